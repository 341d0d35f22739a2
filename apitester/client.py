"""
HTTP send capability
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

import requests

from apitester.errors import SendError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class HTTPResponse:
    """Status and raw text of a response"""
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)
    response_time_ms: float = 0.0

    @property
    def size_bytes(self) -> int:
        return len(self.text.encode('utf-8'))


def parse_headers(header_text: str) -> Dict[str, str]:
    """
    Parse newline-delimited "Key: Value" headers

    Values may contain ':' themselves. Lines without a key or a ':' are skipped.

    Args:
        header_text: Header block as typed by the user

    Returns:
        Header dictionary
    """
    headers = {}
    for line in (header_text or '').splitlines():
        key, sep, value = line.partition(':')
        key = key.strip()
        if key and sep:
            headers[key] = value.strip()
    return headers


def send_request(method: str, url: str, headers: Optional[Dict[str, str]] = None,
                 body: Optional[str] = None, timeout: int = DEFAULT_TIMEOUT) -> HTTPResponse:
    """
    Send an HTTP request

    Args:
        method: HTTP method
        url: Full URL
        headers: Header dictionary
        body: Raw payload; ignored for GET and when empty
        timeout: Request timeout in seconds

    Returns:
        HTTPResponse with status code and body text

    Raises:
        SendError: If the request could not be completed
    """
    method = method.upper()
    data = body.encode('utf-8') if body and method != 'GET' else None

    start_time = time.time()
    try:
        response = requests.request(
            method=method,
            url=url,
            headers=headers or {},
            data=data,
            timeout=timeout
        )
    except requests.exceptions.RequestException as e:
        logger.debug(f"{method} {url} failed: {e}")
        raise SendError(str(e) or "Request failed") from e
    response_time_ms = (time.time() - start_time) * 1000

    logger.debug(f"{method} {url} -> {response.status_code} in {response_time_ms:.0f}ms")
    return HTTPResponse(
        status_code=response.status_code,
        text=response.text,
        headers=dict(response.headers),
        response_time_ms=response_time_ms
    )
