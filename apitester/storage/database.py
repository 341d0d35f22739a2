"""
SQLite database backing the remote store for saved requests and settings

The database location comes from configuration (``database.path`` or the
APITESTER_DATABASE environment variable). When no location is configured the
store is unavailable and every operation raises StoreUnavailable.
"""

import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from apitester.errors import StoreUnavailable, StoreError, ValidationError
from apitester.models import SavedRequest, Settings, SETTINGS_ID

logger = logging.getLogger(__name__)

# Database schema version for migration tracking
CURRENT_SCHEMA_VERSION = 1


def get_db_path() -> Path:
    """Get the default path of the SQLite database (created on first connect)"""
    return Path.home() / '.apitester' / 'data.db'


@contextmanager
def _store_errors(action: str):
    """Translate sqlite3 failures into StoreError, keeping the underlying message"""
    try:
        yield
    except sqlite3.Error as e:
        raise StoreError(f"Failed to {action}: {e}") from e


class Database:
    """SQLite database manager for saved requests and settings"""

    def __init__(self, db_path: Path):
        """
        Initialize database connection

        Args:
            db_path: Path to database file
        """
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None
        self._initialize()

    def _initialize(self):
        """Initialize database and create schema if needed"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            timeout=30.0
        )
        self.conn.row_factory = sqlite3.Row

        self._create_schema()
        self._run_migrations()

    def _create_schema(self):
        """Create database schema if it doesn't exist"""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS schema_versions (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                description TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS saved_requests (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                url TEXT NOT NULL,
                method TEXT NOT NULL,
                headers TEXT NOT NULL DEFAULT '',
                body TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL
            )
        """)

        # Zero-or-one row table, keyed by the constant settings id
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_settings (
                id TEXT PRIMARY KEY CHECK (id = 'default'),
                use_database BOOLEAN NOT NULL DEFAULT 1
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_saved_requests_created
            ON saved_requests(created_at DESC)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_saved_requests_name
            ON saved_requests(name)
        """)

        self.conn.commit()

    def _run_migrations(self):
        """Record the schema version if this is a fresh database"""
        cursor = self.conn.cursor()

        cursor.execute("SELECT MAX(version) FROM schema_versions")
        result = cursor.fetchone()
        current_version = result[0] if result[0] is not None else 0

        if current_version < CURRENT_SCHEMA_VERSION:
            logger.info(f"Running database migrations from version {current_version} to {CURRENT_SCHEMA_VERSION}")
            cursor.execute("""
                INSERT INTO schema_versions (version, description)
                VALUES (1, 'Initial schema with saved requests and app settings')
            """)
            self.conn.commit()

    def _row_to_request(self, row: sqlite3.Row) -> SavedRequest:
        return SavedRequest(
            id=row['id'],
            name=row['name'],
            url=row['url'],
            method=row['method'],
            headers=row['headers'],
            body=row['body'],
            created_at=datetime.fromisoformat(row['created_at'])
        )

    def list_saved_requests(self) -> List[SavedRequest]:
        """
        Get all saved requests, newest first

        Returns:
            List of SavedRequest objects ordered by creation time (descending)
        """
        with _store_errors("fetch requests"):
            cursor = self.conn.cursor()
            cursor.execute("""
                SELECT * FROM saved_requests
                ORDER BY created_at DESC, rowid DESC
            """)
            return [self._row_to_request(row) for row in cursor.fetchall()]

    def create_saved_request(self, name: str, url: str, method: str,
                             headers: Optional[str] = None,
                             body: Optional[str] = None) -> SavedRequest:
        """
        Save a request preset

        Args:
            name: Preset name
            url: Request URL
            method: HTTP method
            headers: Newline-delimited "Key: Value" headers (None becomes "")
            body: Raw request payload (None becomes "")

        Returns:
            Stored SavedRequest with server-assigned id and created_at
        """
        saved = SavedRequest(
            id=uuid.uuid4().hex,
            name=name,
            url=url,
            method=method,
            headers=headers or "",
            body=body or "",
            created_at=datetime.now()
        )
        with _store_errors("create request"):
            cursor = self.conn.cursor()
            try:
                cursor.execute("""
                    INSERT INTO saved_requests (
                        id, name, url, method, headers, body, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    saved.id, saved.name, saved.url, saved.method,
                    saved.headers, saved.body, saved.created_at.isoformat()
                ))
                self.conn.commit()
            except sqlite3.Error:
                self.conn.rollback()
                raise
        logger.debug(f"Saved request {saved.id} ({saved.name})")
        return saved

    def delete_saved_request(self, request_id: str) -> None:
        """
        Delete a saved request

        Args:
            request_id: Id of the saved request

        Raises:
            ValidationError: If request_id is empty
            StoreError: If no row matches or the query fails
        """
        if not request_id:
            raise ValidationError("ID required")

        with _store_errors("delete request"):
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM saved_requests WHERE id = ?", (request_id,))
            self.conn.commit()
            deleted = cursor.rowcount

        if deleted == 0:
            raise StoreError(f"Failed to delete request: no saved request with id '{request_id}'")
        logger.debug(f"Deleted request {request_id}")

    def find_saved_request_by_name(self, name: str) -> Optional[SavedRequest]:
        """Get the first saved request with the given name, or None"""
        with _store_errors("fetch requests"):
            cursor = self.conn.cursor()
            cursor.execute("""
                SELECT * FROM saved_requests WHERE name = ?
                ORDER BY created_at DESC, rowid DESC LIMIT 1
            """, (name,))
            row = cursor.fetchone()
        return self._row_to_request(row) if row else None

    def get_settings(self) -> Settings:
        """
        Get the settings record, creating the default one if absent

        Returns:
            Settings with id "default"
        """
        with _store_errors("fetch settings"):
            cursor = self.conn.cursor()
            try:
                cursor.execute("""
                    INSERT OR IGNORE INTO app_settings (id, use_database)
                    VALUES (?, 1)
                """, (SETTINGS_ID,))
                self.conn.commit()
            except sqlite3.IntegrityError:
                # Another writer created it first
                self.conn.rollback()

            cursor.execute("SELECT * FROM app_settings WHERE id = ?", (SETTINGS_ID,))
            row = cursor.fetchone()

        if row is None:
            raise StoreError("Failed to fetch settings: settings record missing")
        return Settings(id=row['id'], use_database=bool(row['use_database']))

    def update_settings(self, use_database: bool) -> Settings:
        """
        Create or overwrite the settings record

        Args:
            use_database: Whether presets should be stored in the database

        Returns:
            Updated Settings
        """
        with _store_errors("update settings"):
            cursor = self.conn.cursor()
            cursor.execute("""
                INSERT INTO app_settings (id, use_database) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET use_database = excluded.use_database
            """, (SETTINGS_ID, bool(use_database)))
            self.conn.commit()
        return Settings(id=SETTINGS_ID, use_database=bool(use_database))

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()

    def __del__(self):
        """Cleanup on deletion"""
        self.close()


class RequestsNamespace:
    """Namespace for saved request operations"""

    def __init__(self, storage: 'Storage'):
        self._storage = storage

    def list(self) -> List[SavedRequest]:
        """Get all saved requests, newest first"""
        return self._storage.database().list_saved_requests()

    def create(self, name: str, url: str, method: str,
               headers: Optional[str] = None,
               body: Optional[str] = None) -> SavedRequest:
        """Save a request preset"""
        return self._storage.database().create_saved_request(name, url, method, headers, body)

    def delete(self, request_id: str) -> None:
        """Delete a saved request"""
        if not request_id:
            raise ValidationError("ID required")
        return self._storage.database().delete_saved_request(request_id)

    def find_by_name(self, name: str) -> Optional[SavedRequest]:
        """Get a saved request by name"""
        return self._storage.database().find_saved_request_by_name(name)


class SettingsNamespace:
    """Namespace for the settings record"""

    def __init__(self, storage: 'Storage'):
        self._storage = storage

    def get(self) -> Settings:
        """Get (or lazily create) the settings record"""
        return self._storage.database().get_settings()

    def update(self, use_database: bool) -> Settings:
        """Upsert the settings record"""
        return self._storage.database().update_settings(use_database)


class Storage:
    """Remote store with namespaces for saved requests and settings"""

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize storage

        Args:
            db_path: Path to database file. None means the store is not configured.
        """
        self.db_path = Path(db_path) if db_path is not None else None
        self._db: Optional[Database] = None
        self.requests = RequestsNamespace(self)
        self.settings = SettingsNamespace(self)

    @property
    def configured(self) -> bool:
        return self.db_path is not None

    def database(self) -> Database:
        """
        Get the open database, connecting on first use

        Raises:
            StoreUnavailable: If no database is configured
            StoreError: If the database cannot be opened
        """
        if self.db_path is None:
            raise StoreUnavailable("Database not configured")
        if self._db is None:
            try:
                self._db = Database(self.db_path)
            except (sqlite3.Error, OSError) as e:
                raise StoreError(f"Failed to open database at {self.db_path}: {e}") from e
            logger.debug(f"Opened database at {self.db_path}")
        return self._db

    def describe(self) -> Dict[str, Any]:
        """Summary used by the CLI status output"""
        return {
            'configured': self.configured,
            'path': str(self.db_path) if self.db_path else None,
        }

    def close(self):
        """Close database connection"""
        if self._db:
            self._db.close()
            self._db = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()

    def __del__(self):
        """Cleanup on deletion"""
        self.close()
