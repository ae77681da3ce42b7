"""
CLI display components
"""
