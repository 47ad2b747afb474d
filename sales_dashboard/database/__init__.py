"""
Database Module
"""
from .connection import init_database, close_database, get_db, check_database_health
from .models import Base, Transaction, TransactionItem, BiteOrder, BiteOrderItem

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "check_database_health",
    "Base",
    "Transaction",
    "TransactionItem",
    "BiteOrder",
    "BiteOrderItem",
]
