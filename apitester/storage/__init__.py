"""
Storage module for API Tester

Provides the two persistence backends for saved requests:
- Remote store (SQLite database) for saved requests and settings
- Local fallback store (JSON slot on disk) used when the database is off or unreachable
"""

from apitester.storage.database import Database, get_db_path, Storage
from apitester.storage.local_store import LocalStore, STORAGE_KEY, get_local_dir

__all__ = [
    'Database', 'get_db_path', 'Storage', 'LocalStore', 'STORAGE_KEY', 'get_local_dir'
]
