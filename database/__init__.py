"""
Tender Portal Monitor - Database Package

This package handles all persistence:
- Connection management and schema initialization
- Portal catalog, tenders and notifications
- Read-side aggregate queries
"""

from database.db import Database, PersistenceFailure
from database.models import Notification, Portal, Tender
from database.queries import TenderQueries

__all__ = [
    "Database",
    "PersistenceFailure",
    "Notification",
    "Portal",
    "Tender",
    "TenderQueries",
]
