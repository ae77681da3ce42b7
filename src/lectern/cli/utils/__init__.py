"""
CLI utility modules
"""
