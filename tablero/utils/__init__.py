"""
Utility helpers shared across services.
"""
