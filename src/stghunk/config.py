"""Configuration management for stghunk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore

CONFIG_FILENAME = ".stghunk.yml"

_DEFAULT_CONFIG = {
    "git": {
        "executable": "git",
    },
    "diff": {
        "context_lines": 3,
        "renames": False,
    },
}


@dataclass
class StgHunkConfig:
    """Full stghunk configuration loaded from `.stghunk.yml`."""

    git_executable: str = "git"
    context_lines: int = 3
    renames: bool = False

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> StgHunkConfig:
        """Load configuration from a YAML file, falling back to defaults.

        Search order:
        1. Explicit ``config_path`` argument
        2. ``.stghunk.yml`` in the current directory
        3. Built-in defaults
        """
        raw: dict[str, Any] = dict(_DEFAULT_CONFIG)

        search_paths: list[Path] = []
        if config_path:
            search_paths.append(Path(config_path))
        search_paths.append(Path(CONFIG_FILENAME))

        for path in search_paths:
            if path.exists():
                with open(path, encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
                if loaded and isinstance(loaded, dict):
                    raw = _deep_merge(raw, loaded)
                break

        return cls._from_raw(raw)

    @classmethod
    def _from_raw(cls, raw: dict[str, Any]) -> StgHunkConfig:
        """Build config from a raw dict (merged defaults + user overrides)."""
        cfg = cls()

        git = raw.get("git", {})
        cfg.git_executable = str(git.get("executable", cfg.git_executable))

        diff = raw.get("diff", {})
        context_lines = int(diff.get("context_lines", cfg.context_lines))
        if context_lines < 0:
            raise ValueError(f"diff.context_lines must not be negative, got {context_lines}")
        cfg.context_lines = context_lines
        cfg.renames = bool(diff.get("renames", cfg.renames))

        return cfg


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep-merge override dict into base dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
