"""
Database connection layer.
"""

from .connection import ConnectionEventLogger, DatabaseConnection, database

__all__ = [
    "DatabaseConnection",
    "ConnectionEventLogger",
    "database",
]
