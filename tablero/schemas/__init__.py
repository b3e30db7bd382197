"""
Pydantic models for report pages, snapshots and pass holders.
"""
