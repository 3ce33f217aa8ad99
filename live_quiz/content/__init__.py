"""Content package for quiz pack loading."""

from .loaders import (
    ContentError,
    get_all_packs_metadata,
    get_pack_metadata,
    get_packs_directory,
    list_available_packs,
    load_engine_config,
    load_pack,
    load_pack_data,
    load_pack_file,
    load_sample_packs,
)

__all__ = [
    "ContentError",
    "get_all_packs_metadata",
    "get_pack_metadata",
    "get_packs_directory",
    "list_available_packs",
    "load_engine_config",
    "load_pack",
    "load_pack_data",
    "load_pack_file",
    "load_sample_packs",
]
