"""Persistence helpers for license state."""

from __future__ import annotations

import json
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from .state import LicenseState

logger = logging.getLogger(__name__)


def _get_app_dir() -> Path:
    """Get the directory the license record lives in."""
    if getattr(sys, 'frozen', False):
        # Running as PyInstaller bundle (.exe), portable mode
        return Path(sys.executable).parent
    else:
        # Installed package; site-packages may be read-only
        return Path.home() / ".billsnap"


DEFAULT_DIR = _get_app_dir()
DEFAULT_PATH = DEFAULT_DIR / "billsnap_license.json"


def _resolve_path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else DEFAULT_PATH


def load_cached_license(path: Optional[Path] = None) -> Optional[Dict[str, object]]:
    target = _resolve_path(path)
    try:
        with target.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable license file %s: %s", target, exc)
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def save_license(payload: Dict[str, object], path: Optional[Path] = None) -> Path:
    target = _resolve_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)
    return target


def clear_license(path: Optional[Path] = None) -> None:
    target = _resolve_path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return


class LicenseStore(ABC):
    """Port the license managers persist through."""

    @abstractmethod
    def load(self) -> Optional[LicenseState]:
        """Return the stored record, or None when there is none."""

    @abstractmethod
    def save(self, state: LicenseState) -> None:
        """Persist the record; raises OSError when it cannot be written."""

    @abstractmethod
    def clear(self) -> None:
        ...


class JsonFileStore(LicenseStore):
    """Store the license record as a single JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = _resolve_path(path)

    def load(self) -> Optional[LicenseState]:
        payload = load_cached_license(self.path)
        if payload is None:
            return None
        try:
            return LicenseState.from_dict(payload)
        except ValueError as exc:
            logger.warning("Ignoring malformed license record in %s: %s", self.path, exc)
            return None

    def save(self, state: LicenseState) -> None:
        save_license(state.to_dict(), self.path)

    def clear(self) -> None:
        clear_license(self.path)


class MemoryStore(LicenseStore):
    """Keep the license record in memory; used by tests and embedded hosts."""

    def __init__(self, state: Optional[LicenseState] = None) -> None:
        self._payload = state.to_dict() if state is not None else None
        self.saves = 0

    def load(self) -> Optional[LicenseState]:
        if self._payload is None:
            return None
        return LicenseState.from_dict(dict(self._payload))

    def save(self, state: LicenseState) -> None:
        self._payload = state.to_dict()
        self.saves += 1

    def clear(self) -> None:
        self._payload = None
