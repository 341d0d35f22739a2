"""
Data model for saved requests and application settings
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional
from urllib.parse import urlparse


HTTP_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH']

# Maximum number of saved requests kept in the working set / local slot
MAX_SAVED_REQUESTS = 50

# Fixed id of the one and only settings record
SETTINGS_ID = 'default'


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, including the 'Z' UTC suffix JavaScript writes"""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


@dataclass
class SavedRequest:
    """A named, replayable HTTP request template"""
    id: str
    name: str
    url: str
    method: str
    headers: str = ""
    body: str = ""
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted layout (camelCase, createdAt only when set)"""
        data = {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'method': self.method,
            'headers': self.headers,
            'body': self.body,
        }
        if self.created_at is not None:
            data['createdAt'] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavedRequest':
        """Build a SavedRequest from its persisted layout"""
        created_at = data.get('createdAt')
        if isinstance(created_at, str):
            created_at = _parse_timestamp(created_at)
        return cls(
            id=str(data['id']),
            name=data['name'],
            url=data['url'],
            method=data['method'],
            headers=data.get('headers') or "",
            body=data.get('body') or "",
            created_at=created_at
        )


@dataclass
class Settings:
    """Global settings record controlling persistence mode"""
    id: str = SETTINGS_ID
    use_database: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'useDatabase': self.use_database}


def derive_request_name(method: str, url: str) -> str:
    """
    Derive a preset name from the request

    Args:
        method: HTTP method
        url: Request URL

    Returns:
        Name in the form "<METHOD> <URL path>" (path defaults to "/")
    """
    path = urlparse(url).path or '/'
    return f"{method.upper()} {path}"
