"""Quiz pack and engine config loaders.

Load quiz packs and engine configuration from YAML or JSON files.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..engine import EngineConfig
from ..models.pack import QuizPack
from ..scoring import ScoringConfig

_logger = logging.getLogger(__name__)


class ContentError(ValueError):
    """Content parsed but does not describe a valid quiz pack."""

    def __init__(self, source: str, error: ValidationError) -> None:
        super().__init__(f"invalid quiz pack in {source}: {error}")
        self.source = source
        self.error = error


def get_packs_directory() -> str:
    """Get the path to the built-in packs directory."""
    current_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(current_dir, "..", "packs")


def _load_json_file(filepath: str) -> Optional[Any]:
    """Load a JSON file safely."""
    if not os.path.isfile(filepath):
        return None
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        _logger.warning(f"Failed to load {filepath}: {e}")
        return None


def _load_yaml_file(filepath: str) -> Optional[Any]:
    """Load a YAML file safely."""
    if not os.path.isfile(filepath):
        return None
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        _logger.warning(f"Failed to load {filepath}: {e}")
        return None


def _load_config_file(base_path: str) -> Optional[Any]:
    """Load a config file, trying .yaml first then .json."""
    data = _load_yaml_file(base_path + ".yaml")
    if data is not None:
        return data
    return _load_json_file(base_path + ".json")


def _load_any_file(filepath: str) -> Optional[Any]:
    if filepath.endswith((".yaml", ".yml")):
        return _load_yaml_file(filepath)
    return _load_json_file(filepath)


def _build_pack(data: Dict[str, Any], source: str, slug: str = "") -> QuizPack:
    if slug and not data.get("slug"):
        data = {**data, "slug": slug}
    try:
        return QuizPack.from_dict(data)
    except ValidationError as e:
        raise ContentError(source, e) from e


def list_available_packs(packs_dir: Optional[str] = None) -> List[str]:
    """List available pack slugs (from .yaml and .json, deduplicated)."""
    packs_dir = packs_dir or get_packs_directory()
    if not os.path.isdir(packs_dir):
        return []

    slugs: set[str] = set()
    for filename in os.listdir(packs_dir):
        stem, ext = os.path.splitext(filename)
        if ext in (".yaml", ".json"):
            slugs.add(stem)
    return sorted(slugs)


def load_pack_data(slug: str, packs_dir: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Load raw pack content by slug (.yaml preferred over .json).

    Args:
        slug: Pack identifier (e.g., "math-mania")
        packs_dir: Directory to look in; the built-in packs by default

    Returns:
        Pack data dict or None if not found
    """
    packs_dir = packs_dir or get_packs_directory()
    data = _load_config_file(os.path.join(packs_dir, slug))
    if isinstance(data, dict):
        return data
    return None


def load_pack(slug: str, packs_dir: Optional[str] = None) -> Optional[QuizPack]:
    """Load and validate a pack by slug.

    Returns:
        QuizPack or None if not found

    Raises:
        ContentError: The file exists but is not a valid pack
    """
    data = load_pack_data(slug, packs_dir)
    if data is None:
        return None
    return _build_pack(data, slug, slug)


def load_pack_file(filepath: str) -> Optional[QuizPack]:
    """Load and validate a pack from an explicit .yaml/.yml/.json path."""
    data = _load_any_file(filepath)
    if not isinstance(data, dict):
        return None
    slug = os.path.splitext(os.path.basename(filepath))[0]
    return _build_pack(data, filepath, slug)


def load_sample_packs(packs_dir: Optional[str] = None) -> List[QuizPack]:
    """Load every pack in the packs directory, in slug order."""
    packs = []
    for slug in list_available_packs(packs_dir):
        pack = load_pack(slug, packs_dir)
        if pack:
            packs.append(pack)
    return packs


def get_pack_metadata(slug: str, packs_dir: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Get pack metadata without building the questions.

    Returns:
        Dict with slug, title, description, category, icon, color, questionCount
    """
    content = load_pack_data(slug, packs_dir)
    if not content:
        return None

    return {
        "slug": content.get("slug", slug),
        "title": content.get("title", slug.replace("-", " ").title()),
        "description": content.get("description", ""),
        "category": content.get("category", ""),
        "icon": content.get("icon"),
        "color": content.get("color"),
        "questionCount": len(content.get("questions") or []),
    }


def get_all_packs_metadata(packs_dir: Optional[str] = None) -> List[Dict[str, Any]]:
    """Get metadata for all available packs."""
    metadata = []
    for slug in list_available_packs(packs_dir):
        meta = get_pack_metadata(slug, packs_dir)
        if meta:
            metadata.append(meta)
    return metadata


def load_engine_config(filepath: str) -> Tuple[EngineConfig, ScoringConfig]:
    """Load engine and scoring configuration from a YAML or JSON file.

    The file holds optional ``engine`` and ``scoring`` mappings; anything
    missing falls back to the defaults.
    """
    data = _load_any_file(filepath)
    if not isinstance(data, dict):
        data = {}
    engine_data = data.get("engine") or {}
    scoring_data = data.get("scoring") or {}
    return EngineConfig.from_dict(engine_data), ScoringConfig.from_dict(scoring_data)
