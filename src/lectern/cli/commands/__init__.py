"""
CLI command modules
"""
