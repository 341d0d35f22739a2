"""
Local fallback store for saved requests

Holds the working set of saved requests in a single JSON slot on disk so the
user can keep working when the database is unreachable. Every mutation
rewrites the whole list.
"""

import json
from pathlib import Path
from typing import List, Optional
import logging

import jsonschema

from apitester.errors import ParseError
from apitester.models import SavedRequest

logger = logging.getLogger(__name__)

# Fixed name of the local slot
STORAGE_KEY = "api-tester-requests"

SAVED_REQUESTS_SCHEMA = {
    'type': 'array',
    'items': {
        'type': 'object',
        'required': ['id', 'name', 'url', 'method'],
        'properties': {
            'id': {'type': ['string', 'number']},
            'name': {'type': 'string'},
            'url': {'type': 'string'},
            'method': {'type': 'string'},
            'headers': {'type': ['string', 'null']},
            'body': {'type': ['string', 'null']},
            'createdAt': {'type': ['string', 'null']},
        }
    }
}


def get_local_dir() -> Path:
    """Get the default directory holding local slots"""
    return Path.home() / '.apitester' / 'local'


class LocalStore:
    """Client-local key/value slot holding a list of saved requests"""

    def __init__(self, directory: Optional[Path] = None, key: str = STORAGE_KEY):
        """
        Initialize local store

        Args:
            directory: Directory for slot files. Defaults to ~/.apitester/local
            key: Slot name
        """
        self.directory = Path(directory) if directory is not None else get_local_dir()
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def _parse(self, raw: bytes) -> List[SavedRequest]:
        try:
            data = json.loads(raw.decode('utf-8'))
            jsonschema.validate(instance=data, schema=SAVED_REQUESTS_SCHEMA)
            return [SavedRequest.from_dict(item) for item in data]
        except (ValueError, jsonschema.ValidationError) as e:
            raise ParseError(f"Invalid data in local slot {self.key}: {e}") from e

    def load(self) -> List[SavedRequest]:
        """
        Load saved requests from the slot

        Returns:
            List of SavedRequest objects; empty if the slot is absent or unreadable
        """
        if not self.path.exists():
            return []

        try:
            raw = self.path.read_bytes()
            return self._parse(raw)
        except OSError as e:
            logger.warning(f"Could not read local slot {self.path}: {e}")
        except ParseError as e:
            logger.warning(f"{e}; treating it as empty")
        return []

    def save(self, requests: List[SavedRequest]):
        """
        Write the full list to the slot, replacing prior contents

        Args:
            requests: Saved requests to store
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([r.to_dict() for r in requests], indent=2)
        tmp_path = self.path.with_suffix('.tmp')
        tmp_path.write_text(payload, encoding='utf-8')
        tmp_path.replace(self.path)
        logger.debug(f"Wrote {len(requests)} saved requests to {self.path}")

    def clear(self):
        """Remove the slot entirely"""
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Removed local slot {self.path}")
