"""Project directory support: finds and loads .constructkit/ configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

CATALOG_ENV = "CONSTRUCTKIT_CATALOG"
DEFAULT_PROVIDER = "aws"


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for .constructkit/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / ".constructkit").is_dir():
            return parent
    return None


def load_project_config(project_root: Path) -> dict[str, Any]:
    """Load .constructkit/config.yaml if it exists."""
    config_path = project_root / ".constructkit" / "config.yaml"
    if config_path.exists():
        return yaml.safe_load(config_path.read_text()) or {}
    return {}


def current_config() -> tuple[Path | None, dict[str, Any]]:
    root = find_project_root()
    return root, (load_project_config(root) if root else {})


def resolve_catalog_path(explicit: Path | None) -> Path:
    """Explicit option, then $CONSTRUCTKIT_CATALOG, then the project's configured catalog."""
    if explicit:
        return explicit

    env = os.environ.get(CATALOG_ENV)
    if env:
        return Path(env)

    root, config = current_config()
    if root and config.get("catalog"):
        return root / config["catalog"]

    raise FileNotFoundError(
        f"No catalog directory specified. Pass --catalog, set {CATALOG_ENV}, "
        "or add 'catalog:' to .constructkit/config.yaml."
    )


def resolve_provider(explicit: str | None) -> str:
    if explicit:
        return explicit.lower()
    _, config = current_config()
    return str(config.get("provider") or DEFAULT_PROVIDER).lower()


def resolve_region(explicit: str | None) -> str | None:
    if explicit:
        return explicit
    _, config = current_config()
    return config.get("region")
