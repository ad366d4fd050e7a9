"""INI configuration for the BillSnap license gate."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .license import remote
from .license.manager import TRIAL_LIMIT
from .license.storage import DEFAULT_PATH

MODES = ("trial", "gate", "remote")
DEFAULT_CONFIG_PATH = Path("config.ini")


@dataclass
class Config:
    mode: str = "trial"
    trial_limit: int = TRIAL_LIMIT
    storage_path: Path = DEFAULT_PATH
    remote_url: str = remote.DEFAULT_VALIDATE_URL
    instance_name: str = remote.DEFAULT_INSTANCE_NAME
    remote_timeout: float = remote.DEFAULT_TIMEOUT
    host: str = "127.0.0.1"
    port: int = 5080
    debug: bool = False


def config_path_from_env() -> Path:
    return Path(os.environ.get("BILLSNAP_CONFIG", DEFAULT_CONFIG_PATH))


def load_config(path: Optional[Path] = None) -> Config:
    """Read ``config.ini``; missing files and keys fall back to defaults."""
    target = Path(path) if path is not None else config_path_from_env()
    parser = configparser.ConfigParser()
    parser.read(target, encoding="utf-8")

    defaults = Config()
    mode = parser.get("license", "mode", fallback=defaults.mode).strip().lower()
    if mode not in MODES:
        raise ValueError(f"Unknown license mode {mode!r}; expected one of {', '.join(MODES)}")

    trial_limit = parser.getint("license", "trial_limit", fallback=defaults.trial_limit)
    if trial_limit < 0:
        raise ValueError("trial_limit must not be negative")

    storage_path = parser.get("license", "storage_path", fallback="").strip()

    return Config(
        mode=mode,
        trial_limit=trial_limit,
        storage_path=Path(storage_path).expanduser() if storage_path else defaults.storage_path,
        remote_url=parser.get("remote", "url", fallback=defaults.remote_url),
        instance_name=parser.get("remote", "instance_name", fallback=defaults.instance_name),
        remote_timeout=parser.getfloat("remote", "timeout", fallback=defaults.remote_timeout),
        host=parser.get("server", "host", fallback=defaults.host),
        port=parser.getint("server", "port", fallback=defaults.port),
        debug=parser.getboolean("server", "debug", fallback=defaults.debug),
    )
