"""
Seed saved requests into the database from a YAML file

Expected format::

    requests:
      - name: "1. Create user"
        url: https://api.example.com/users
        method: POST
        headers: "Content-Type: application/json"
        body: '{"name": "{{USER_NAME}}"}'

``{{PLACEHOLDER}}`` text is stored verbatim.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import logging

import jsonschema
import yaml

from apitester.models import HTTP_METHODS
from apitester.storage.database import Storage

logger = logging.getLogger(__name__)

SEED_SCHEMA = {
    'type': 'object',
    'required': ['requests'],
    'properties': {
        'requests': {
            'type': 'array',
            'items': {
                'type': 'object',
                'required': ['name', 'url', 'method'],
                'properties': {
                    'name': {'type': 'string', 'minLength': 1},
                    'url': {'type': 'string', 'minLength': 1},
                    'method': {'type': 'string', 'enum': HTTP_METHODS + [m.lower() for m in HTTP_METHODS]},
                    'headers': {'type': ['string', 'object', 'null']},
                    'body': {'type': ['string', 'object', 'array', 'null']},
                }
            }
        }
    }
}


@dataclass
class SeedReport:
    created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def load_seed_file(seed_file: Path) -> List[Dict[str, Any]]:
    """
    Read and validate a seed file

    Header mappings are flattened to "Key: Value" lines and structured
    bodies are serialized as indented JSON.

    Raises:
        ValueError: If the file is not valid YAML or does not match the format
    """
    try:
        with open(seed_file, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in seed file {seed_file}: {e}") from e

    try:
        jsonschema.validate(instance=data, schema=SEED_SCHEMA)
    except jsonschema.ValidationError as e:
        location = '/'.join(str(p) for p in e.absolute_path) or '(root)'
        raise ValueError(f"Invalid seed file {seed_file} at {location}: {e.message}") from e

    presets = []
    for item in data['requests']:
        headers = item.get('headers') or ""
        if isinstance(headers, dict):
            headers = "\n".join(f"{k}: {v}" for k, v in headers.items())
        body = item.get('body')
        if isinstance(body, (dict, list)):
            body = json.dumps(body, indent=2)
        presets.append({
            'name': item['name'],
            'url': item['url'],
            'method': item['method'].upper(),
            'headers': headers,
            'body': body or "",
        })
    return presets


def seed_requests(storage: Storage, presets: List[Dict[str, Any]]) -> SeedReport:
    """
    Create presets in the database, skipping names that already exist

    Store errors propagate to the caller.
    """
    report = SeedReport()
    for preset in presets:
        if storage.requests.find_by_name(preset['name']):
            logger.debug(f"Skipping '{preset['name']}' (already exists)")
            report.skipped.append(preset['name'])
            continue
        storage.requests.create(
            preset['name'], preset['url'], preset['method'], preset['headers'], preset['body']
        )
        report.created.append(preset['name'])
    return report
