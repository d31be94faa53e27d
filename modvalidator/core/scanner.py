from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from modvalidator.config import (
    DEFAULT_LOAD_ORDER,
    JSON_DISPLAY_NAME,
    JSON_LOAD_ORDER,
    JSON_VERSION,
    MOD_JSON_FILE,
    UNKNOWN_VERSION,
    VORTEX_MARKER_FILE,
)
from modvalidator.core.fs import FileSystem, default_fs
from modvalidator.models import ModInfo

log = logging.getLogger("modvalidator.scanner")


class ModMetadataError(ValueError):
    """mod.json exists but cannot be turned into a ModInfo."""


def _load_order(value: Any) -> int:
    # bool is an int subclass; a JSON true is not a load order
    if isinstance(value, bool):
        raise ModMetadataError(f"{JSON_LOAD_ORDER} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ModMetadataError(f"{JSON_LOAD_ORDER} must be an integer, got {value!r}")


def parse_mod_json(text: str, directory: str, dir_name: str) -> ModInfo:
    """
    Build a ModInfo from mod.json text. Missing fields fall back to the
    directory name, "Unknown" and 999. Raises ModMetadataError (or
    json.JSONDecodeError, a ValueError) when the file is unusable.
    """
    d: Dict[str, Any] = json.loads(text)
    if not isinstance(d, dict):
        raise ModMetadataError(f"{MOD_JSON_FILE} must contain a JSON object")

    name = d.get(JSON_DISPLAY_NAME)
    if name is not None and not isinstance(name, str):
        raise ModMetadataError(f"{JSON_DISPLAY_NAME} must be a string")

    version = d.get(JSON_VERSION)
    if version is not None and not isinstance(version, str):
        raise ModMetadataError(f"{JSON_VERSION} must be a string")

    order = d.get(JSON_LOAD_ORDER)

    return ModInfo(
        display_name=name or dir_name,
        version=version if version is not None else UNKNOWN_VERSION,
        load_order=DEFAULT_LOAD_ORDER if order is None else _load_order(order),
        directory=directory,
    )


def scan_mods(mods_dir: Optional[str], fs: Optional[FileSystem] = None) -> List[ModInfo]:
    """
    One ModInfo per immediate subdirectory holding a mod.json, stably
    sorted by load order. Missing or unreadable mods_dir gives [].
    """
    fs = fs or default_fs()
    if not mods_dir or not fs.is_dir(mods_dir):
        return []

    try:
        directories = fs.list_directories(mods_dir)
    except OSError as e:
        log.warning("Error scanning mods: %s", e)
        return []

    mods: List[ModInfo] = []
    for d in directories:
        dir_name = fs.basename(d)
        mod_json = fs.join(d, MOD_JSON_FILE)
        if not fs.exists(mod_json):
            continue

        try:
            info = parse_mod_json(fs.read_text(mod_json), d, dir_name)
        except (OSError, ValueError, RecursionError) as e:
            log.warning("Error parsing %s in %s: %s", MOD_JSON_FILE, dir_name, e)
            continue

        if fs.exists(fs.join(d, VORTEX_MARKER_FILE)):
            info = replace(info, managed_externally=True)
        mods.append(info)

    # sorted() is stable: equal load orders keep directory order
    return sorted(mods, key=lambda m: m.load_order)
