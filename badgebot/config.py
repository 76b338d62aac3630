"""
Application configuration registry.

The registry is a single YAML file with a nested key space::

    users:
      bot:
        username: ExampleBot
        password: secret
    wikis:
      wikidata:
        url: https://www.wikidata.org/w/api.php
      enwiki:
        url: https://en.wikipedia.org/w/api.php
    defaults:
      user: bot
      database: bot
      wiki: enwiki
      repo: wikidata

Keys are addressed with dotted paths (``users.bot.username``). The file is
read with PyYAML and written back with ruamel.yaml so that operator comments
survive ``config set-default`` round trips.

Key functions:
- get_config_path() -> Path: Resolve the registry location
- AppConfig.load(path) -> AppConfig: Load the registry from disk
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BADGEBOT_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "badgebot" / "config.yaml"

# Configure ruamel.yaml for comment-preserving round-trips
_yaml = YAML()
_yaml.preserve_quotes = True
_yaml.width = 120


def get_config_path() -> Path:
    """Return the registry path, honouring ``$BADGEBOT_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found."""
    if not path.exists():
        return {}
    with path.open() as f:
        return yaml.safe_load(f) or {}


class AppConfig:
    """Dotted-key view over the YAML configuration registry."""

    def __init__(self, data: dict[str, Any] | None = None, path: Path | None = None):
        self._data: dict[str, Any] = data or {}
        self.path = path

    @classmethod
    def load(cls, path: Path | None = None) -> AppConfig:
        path = path or get_config_path()
        data = _load_yaml(path)
        logger.debug("Loaded configuration from %s (%d top-level keys)", path, len(data))
        return cls(data, path)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a dotted key, or ``default`` when absent."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def set(self, key: str, value: Any) -> None:
        """Set a dotted key, creating intermediate mappings as needed."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def as_dict(self) -> dict[str, Any]:
        return self._data

    def save(self) -> Path:
        """Persist the registry, preserving comments in the existing file."""
        if self.path is None:
            raise ValueError("Configuration has no backing file")

        if self.path.exists():
            with self.path.open() as f:
                document = _yaml.load(f) or CommentedMap()
        else:
            document = CommentedMap()

        _merge_into(document, self._data)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as f:
            _yaml.dump(document, f)
        logger.info("Saved configuration to %s", self.path)
        return self.path


def _merge_into(base: CommentedMap, updates: dict[str, Any]) -> CommentedMap:
    """Deep merge updates into a ruamel CommentedMap, preserving comments."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], CommentedMap) and isinstance(value, dict):
            _merge_into(base[key], value)
        elif isinstance(value, dict) and not isinstance(value, CommentedMap):
            new_map = CommentedMap()
            _merge_into(new_map, value)
            base[key] = new_map
        else:
            base[key] = value
    return base
