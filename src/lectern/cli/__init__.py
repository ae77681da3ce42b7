"""
Command line interface for Lectern
"""
