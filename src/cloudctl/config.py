"""Centralized configuration and on-disk state for cloudctl.

This module owns everything cloudctl keeps under its config directory:
- The current target pointer (`target`, legacy `~/.cloudctl_target`)
- Per-target session records (`tokens.yml`, legacy JSON `~/.cloudctl_token`)
- User color overrides (`colors.yml`)
- Locations of the crash report and per-target request logs

Settings are loaded from environment variables (CLOUDCTL_*) with defaults.

Usage:
    from cloudctl.config import get_config_store

    store = get_config_store()
    print(store.read_target())
    print(store.get_session(store.read_target()))
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudctl.exceptions import ConfigError
from cloudctl.models import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

# --- Constants ---

CONFIG_DIR_NAME = ".cloudctl"
LEGACY_TARGET_FILE_NAME = ".cloudctl_target"
LEGACY_TOKENS_FILE_NAME = ".cloudctl_token"

TARGET_FILE_NAME = "target"
TOKENS_FILE_NAME = "tokens.yml"
COLORS_FILE_NAME = "colors.yml"
CRASH_FILE_NAME = "crash"
LOGS_DIR_NAME = "logs"

DEFAULT_COLORS: dict[str, str] = {
    "name": "blue",
    "neutral": "blue",
    "good": "green",
    "bad": "red",
    "error": "red",
    "unknown": "yellow",
    "warning": "yellow",
    "dim": "bright_black",
    "yes": "green",
    "no": "red",
}


# --- Settings ---


class CloudCtlSettings(BaseSettings):
    """Settings loaded from CLOUDCTL_* environment variables.

    Attributes:
        config_dir: Root directory for all cloudctl state.
        home: Base directory of the legacy target/token files.
        proxy: Default identity to act as (admin only).
        trace: Default for request tracing.
    """

    config_dir: Path = Field(default_factory=lambda: Path.home() / CONFIG_DIR_NAME)
    home: Path = Field(default_factory=Path.home)
    proxy: str | None = None
    trace: bool = False

    model_config = SettingsConfigDict(
        env_prefix="CLOUDCTL_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> CloudCtlSettings:
    """Get the cached global settings.

    Use clear_settings_cache() to force a reload.
    """
    return CloudCtlSettings()


def clear_settings_cache() -> None:
    """Clear the cached settings, forcing reload on next get_settings()."""
    get_settings.cache_clear()


# --- Path utilities ---


def resolve_path(candidates: Sequence[Path]) -> Path:
    """Return the first candidate that exists, else the first candidate.

    Lets old and new file locations be used transparently.
    """
    if not candidates:
        raise ValueError("At least one candidate path is required")
    for path in candidates:
        expanded = path.expanduser()
        if expanded.exists():
            return expanded
    return candidates[0].expanduser()


# --- Session store codecs ---


def decode_session_store(text: str) -> SessionStore:
    """Decode the current (YAML) session store document."""
    data = yaml.safe_load(text) or {}
    return {
        str(target): SessionRecord.from_document(entry)
        for target, entry in data.items()
    }


def decode_legacy_session_store(text: str) -> SessionStore:
    """Decode the legacy (JSON) token file.

    Values are usually bare token strings.
    """
    data = json.loads(text) if text.strip() else {}
    return {
        str(target): SessionRecord.from_document(entry)
        for target, entry in data.items()
    }


def encode_session_store(store: SessionStore) -> str:
    """Encode a session store in the current (YAML) format."""
    data = {target: record.to_document() for target, record in store.items()}
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=True)


# --- Config store ---


class ConfigStore:
    """Reads and writes the files under the config directory.

    File-not-found is always treated as empty. Write failures propagate.
    """

    def __init__(self, config_dir: Path, home: Path | None = None) -> None:
        self.config_dir = config_dir.expanduser()
        self.home = (home or Path.home()).expanduser()

    @classmethod
    def from_settings(cls, settings: CloudCtlSettings | None = None) -> ConfigStore:
        settings = settings or get_settings()
        return cls(config_dir=settings.config_dir, home=settings.home)

    # --- Paths ---

    @property
    def target_path(self) -> Path:
        return self.config_dir / TARGET_FILE_NAME

    @property
    def legacy_target_path(self) -> Path:
        return self.home / LEGACY_TARGET_FILE_NAME

    @property
    def tokens_path(self) -> Path:
        return self.config_dir / TOKENS_FILE_NAME

    @property
    def legacy_tokens_path(self) -> Path:
        return self.home / LEGACY_TOKENS_FILE_NAME

    @property
    def colors_path(self) -> Path:
        return self.config_dir / COLORS_FILE_NAME

    @property
    def crash_path(self) -> Path:
        return self.config_dir / CRASH_FILE_NAME

    def log_path(self, host: str) -> Path:
        """Get the request trace log path for a target host."""
        return self.config_dir / LOGS_DIR_NAME / f"{host}.log"

    def target_file(self) -> Path:
        return resolve_path([self.target_path, self.legacy_target_path])

    def tokens_file(self) -> Path:
        return resolve_path([self.tokens_path, self.legacy_tokens_path])

    def ensure_config_dir(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)

    # --- Target pointer ---

    def read_target(self) -> str | None:
        """Read the current target URL, or None if no target was ever set."""
        path = self.target_file()
        if not path.exists():
            return None
        target = path.read_text().strip()
        return target or None

    def write_target(self, url: str) -> None:
        """Write the current target URL (always to the current location)."""
        self.ensure_config_dir()
        self.target_path.write_text(url)
        logger.debug(f"Target set to {url}")

    # --- Session store ---

    def read_session_store(self) -> SessionStore:
        """Read all session records.

        The legacy token file is only consulted if the current one is absent.
        """
        path = self.tokens_file()
        if not path.exists():
            return {}
        if path == self.tokens_path:
            decode = decode_session_store
        else:
            decode = decode_legacy_session_store

        logger.debug(f"Reading session store from {path}")
        try:
            return decode(path.read_text())
        except (yaml.YAMLError, json.JSONDecodeError, AttributeError, ValueError) as e:
            raise ConfigError(path, str(e)) from e

    def write_session_store(self, store: SessionStore) -> None:
        """Serialize the full store to the current-format file."""
        self.ensure_config_dir()
        path = self.tokens_path
        path.write_text(encode_session_store(store))
        # Make file readable only by owner (0600)
        path.chmod(0o600)
        logger.debug(f"Wrote {len(store)} session record(s) to {path}")

    def get_session(self, target: str) -> SessionRecord:
        """Get the record for a target (an empty record if none is stored)."""
        record = self.read_session_store().get(target)
        return record.model_copy() if record else SessionRecord()

    def save_session(self, target: str, record: SessionRecord) -> None:
        store = self.read_session_store()
        store[target] = record
        self.write_session_store(store)

    def remove_session(self, target: str) -> bool:
        """Delete the record for a target.

        Returns:
            True if a record was removed, False if none existed.
        """
        store = self.read_session_store()
        if target not in store:
            return False
        del store[target]
        self.write_session_store(store)
        return True

    # --- Colors ---

    def read_user_colors(self) -> dict[str, str]:
        """Get the effective label -> color table.

        Defaults, with blue remapped to cyan, overridden by colors.yml.
        """
        colors = default_colors()

        path = self.colors_path
        if not path.exists():
            return colors

        try:
            overrides: dict[Any, Any] = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(path, str(e)) from e
        if not isinstance(overrides, dict):
            raise ConfigError(path, "expected a mapping of label to color")

        for label, color in overrides.items():
            colors[_symbol(label)] = _symbol(color)
        return colors


def default_colors() -> dict[str, str]:
    """The built-in label -> color table."""
    # most terminal schemes render blue poorly
    return {
        label: "cyan" if color == "blue" else color
        for label, color in DEFAULT_COLORS.items()
    }


def _symbol(value: Any) -> str:
    return str(value).strip().lstrip(":").lower()


def get_config_store() -> ConfigStore:
    """Get a config store rooted at the configured directory."""
    return ConfigStore.from_settings()
