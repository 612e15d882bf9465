"""
Tama Learn - Persistence

This module handles saving and loading the pet state to/from disk.

The whole aggregate is one JSON document stored under a fixed key::

    {"tamagotchi-storage": {"state": {...}, "version": 1}}

Dates are ISO-8601 strings, enums their string values. Unknown keys are
ignored and missing ones fall back to their defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union, get_args, get_origin, get_type_hints

from .errors import PersistenceError
from .models import PetState
from .utils import STORAGE_KEY, STORAGE_VERSION

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _encode(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (tuple, list)):
        return [_encode(v) for v in value]
    return value


def _decode(tp: Any, value: Any) -> Any:
    if value is None:
        return None
    origin = get_origin(tp)
    if origin is Union:
        inner = [a for a in get_args(tp) if a is not type(None)]
        return _decode(inner[0], value)
    if origin is tuple:
        if not isinstance(value, list):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        return tuple(_decode(get_args(tp)[0], v) for v in value)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return tp(value)
    if tp is datetime:
        dt = datetime.fromisoformat(value)
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    if is_dataclass(tp):
        return _from_dict(tp, value)
    if tp in (int, float):
        return tp(value)
    return value


def _from_dict(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object for {cls.__name__}")
    hints = get_type_hints(cls)
    allowed = {f.name for f in fields(cls) if f.init}
    return cls(**{k: _decode(hints[k], v) for k, v in data.items() if k in allowed})


def to_document(state: PetState) -> dict[str, Any]:
    """Wrap the state in the storage envelope."""
    return {STORAGE_KEY: {"state": _encode(state), "version": STORAGE_VERSION}}


def from_document(doc: Any) -> PetState:
    """
    Rebuild the state from a storage document.

    Raises:
        PersistenceError: The document does not hold a pet state
    """
    try:
        envelope = doc[STORAGE_KEY]
        version = envelope.get("version", STORAGE_VERSION)
        if version != STORAGE_VERSION:
            logger.warning("save was written by storage version %s, reading it as %s", version, STORAGE_VERSION)
        return _from_dict(PetState, envelope["state"])
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceError(f"save document is not a pet state: {e}") from e


def load_state(path: str) -> Optional[PetState]:
    """
    Load the pet from a JSON save file.

    Args:
        path: Path to the save file

    Returns:
        PetState if a save exists, None otherwise

    Raises:
        PersistenceError: The file exists but cannot be read or parsed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("could not read save %s: %s", path, e)
        raise PersistenceError(f"could not read {path}: {e}") from e
    return from_document(raw)


def save_state(state: PetState, path: str) -> None:
    """
    Save the pet to a JSON file atomically.

    Args:
        state: Snapshot to save
        path: Path to the save file

    Raises:
        PersistenceError: The file could not be written
    """
    tmp = f"{path}.tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(to_document(state), f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except OSError as e:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise PersistenceError(f"could not write {path}: {e}") from e
