"""
Source Loader — Load and validate source and profile YAML files.

Built-in sources ship in builtin.yaml next to this module. A user file
may add sources or override built-ins of the same name.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import ProfilesFile, RemoteSource, SourcesFile

logger = logging.getLogger(__name__)

BUILTIN_SOURCES = Path(__file__).parent / "builtin.yaml"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


def load_sources_file(path: Path) -> SourcesFile:
    """Load one sources YAML file."""
    data = load_yaml(path)
    try:
        return SourcesFile(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid source definition in {path}:\n{e}") from e


def load_sources(extra_file: Optional[Path] = None) -> Dict[str, RemoteSource]:
    """
    Load all known sources.

    Args:
        extra_file: Optional user sources file; its entries override
                    built-ins with the same name.

    Returns:
        Mapping of source name to RemoteSource
    """
    sources = load_sources_file(BUILTIN_SOURCES).by_name()

    if extra_file is not None:
        user = load_sources_file(Path(extra_file)).by_name()
        for name in user:
            if name in sources:
                logger.info(f"[sources] {extra_file} overrides built-in source '{name}'")
        sources.update(user)

    logger.debug(f"[sources] Loaded {len(sources)} source(s): {', '.join(sorted(sources))}")
    return sources


def get_source(name: str, sources: Dict[str, RemoteSource]) -> RemoteSource:
    """Look up a source by name, failing with ConfigError."""
    try:
        return sources[name]
    except KeyError:
        known = ", ".join(sorted(sources)) or "none"
        raise ConfigError(f"Unknown source '{name}' (known: {known})") from None


def load_profiles(path: Path) -> ProfilesFile:
    """Load the mirror profiles file."""
    data = load_yaml(Path(path))
    try:
        return ProfilesFile(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid mirror profile in {path}:\n{e}") from e
