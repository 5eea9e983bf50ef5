"""
Bluejay command-line interface.
"""
