"""
Database infrastructure components.
"""

from unmute.infrastructure.database.connection import Base, DatabaseManager

__all__ = [
    "Base",
    "DatabaseManager",
]
