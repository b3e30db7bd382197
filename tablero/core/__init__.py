"""
Core helpers: settings and store authentication headers.
"""
