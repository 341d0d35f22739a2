"""
Utility functions
"""

import os
import re
import time
from typing import Iterable


def format_duration(seconds: float) -> str:
    """
    Format duration in human-readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1.5s", "250ms")
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    else:
        return f"{seconds:.2f}s"


def expand_env_vars(value: str) -> str:
    """
    Expand environment variables in a string

    Supports:
    - $VAR
    - ${VAR}
    - ${VAR:-default}

    Args:
        value: String that may contain environment variable references

    Returns:
        String with environment variables expanded
    """
    if not isinstance(value, str):
        return value

    def replace_env(match):
        var_name = match.group(1)
        default = match.group(2)

        env_value = os.getenv(var_name)
        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            # Leave unknown variables untouched
            return match.group(0)

    value = re.sub(r'\$\{([^}:]+)(?::-([^}]*))?\}', replace_env, value)
    value = re.sub(r'\$([A-Za-z_][A-Za-z0-9_]*)', lambda m: os.getenv(m.group(1), m.group(0)), value)

    return value


def timestamp_id(taken: Iterable[str] = ()) -> str:
    """
    Generate a client-side id from the current time in milliseconds

    Args:
        taken: Ids already in use; the timestamp is bumped until it is free

    Returns:
        Id string unique among ``taken``
    """
    used = set(taken)
    candidate = int(time.time() * 1000)
    while str(candidate) in used:
        candidate += 1
    return str(candidate)


def truncate(text: str, length: int) -> str:
    """Shorten text to ``length`` characters, ending with '...' when cut"""
    if len(text) <= length:
        return text
    return text[:max(length - 3, 0)] + "..."
