"""
Database module initialization
"""

from .mongodb import db, connect_to_mongo, close_mongo_connection, get_database

__all__ = [
    "db",
    "connect_to_mongo",
    "close_mongo_connection",
    "get_database",
]
