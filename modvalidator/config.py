from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict

APP_NAME = "Mod Validator"
APP_VERSION = "1.0.0"

# Files the scanner and rule store look for
RULES_FILE = "mwvr_mod_validation_rules.json"
MOD_JSON_FILE = "mod.json"
VORTEX_MARKER_FILE = "__folder_managed_by_vortex"
CONFIG_FILE = "modvalidator_config.json"

# Override rules live here, relative to the mods directory
RESOURCES_SUBPATH = ("MechWarriorVR", "Resources")
RESOURCES_LABEL = "/".join(RESOURCES_SUBPATH)
PROGRAM_DIR_LABEL = "program directory"

# mod.json keys
JSON_DISPLAY_NAME = "displayName"
JSON_VERSION = "version"
JSON_LOAD_ORDER = "defaultLoadOrder"

DEFAULT_LOAD_ORDER = 999
UNKNOWN_VERSION = "Unknown"

MAX_LOG_BUFFER = 1000

log = logging.getLogger("modvalidator.config")

_WIN_VAR_RE = re.compile(r"%([^%]+)%")


@dataclass(frozen=True)
class AppConfig:
    mods_directory: str = ""
    rules_directory: str = ""   # "" means the program directory
    log_level: str = "INFO"


def program_dir() -> Path:
    return Path(__file__).resolve().parent


def default_config_path() -> Path:
    return program_dir() / CONFIG_FILE


def expand_path(text: str) -> str:
    """
    Expand %VAR% (Windows style), $VAR / ${VAR} and a leading ~.
    Unknown %VAR% placeholders are left untouched.
    """
    if not text:
        return text

    def _sub(m: "re.Match[str]") -> str:
        return os.environ.get(m.group(1), m.group(0))

    expanded = _WIN_VAR_RE.sub(_sub, text)
    expanded = os.path.expandvars(expanded)
    return os.path.expanduser(expanded)


def from_json_dict(d: Dict[str, Any]) -> AppConfig:
    return AppConfig(
        mods_directory=str(d.get("modsDirectory") or ""),
        rules_directory=str(d.get("rulesDirectory") or ""),
        log_level=str(d.get("logLevel") or "INFO").upper(),
    )


def to_json_dict(cfg: AppConfig) -> Dict[str, Any]:
    d = asdict(cfg)
    return {
        "modsDirectory": d["mods_directory"],
        "rulesDirectory": d["rules_directory"],
        "logLevel": d["log_level"],
    }


def load_config(path: str | None = None) -> AppConfig:
    p = Path(path) if path else default_config_path()
    if not p.exists():
        return AppConfig()

    try:
        d = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as e:
        log.warning("Error loading config %s: %s", p, e)
        return AppConfig()

    if not isinstance(d, dict):
        log.warning("Config %s is not a JSON object; using defaults", p)
        return AppConfig()
    return from_json_dict(d)


def save_config(cfg: AppConfig, path: str | None = None) -> Path:
    p = Path(path) if path else default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(to_json_dict(cfg), indent=2), encoding="utf-8")
    return p
