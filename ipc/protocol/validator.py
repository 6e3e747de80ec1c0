from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .errors import ProtocolViolation

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Mapping message kind -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    "handshake_error": "handshake_error.json",
    "error_reply": "error_reply.json",
    "set_activity": "set_activity.json",
}


def _schema_path(kind: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(kind)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=8)
def load_schema(kind: str) -> Optional[dict]:
    """Load JSON schema for a message kind if present."""
    path = _schema_path(kind)
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_msg(msg: Dict[str, Any], kind: str) -> None:
    """Validate a decoded payload against the schema registered for `kind`."""
    schema = load_schema(kind)
    if schema is None:
        raise KeyError(f"No schema registered for {kind!r}")
    try:
        jsonschema.validate(instance=msg, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ProtocolViolation(f"Schema validation failed for {kind}: {exc.message}") from exc


def is_valid(msg: Dict[str, Any], kind: str) -> bool:
    try:
        validate_msg(msg, kind)
    except ProtocolViolation:
        return False
    return True


__all__ = ["load_schema", "validate_msg", "is_valid"]
