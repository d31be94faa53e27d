from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from modvalidator.config import (
    PROGRAM_DIR_LABEL,
    RESOURCES_LABEL,
    RESOURCES_SUBPATH,
    RULES_FILE,
)
from modvalidator.core.fs import FileSystem, default_fs
from modvalidator.core.names import unique_names
from modvalidator.models import ModCheck, OrderRule, RuleSet

log = logging.getLogger("modvalidator.rules")


# -------------------------
# Tolerant JSON
# -------------------------
def strip_json_extras(text: str) -> str:
    """
    Remove // and /* */ comments and trailing commas before } or ],
    leaving string literals untouched.
    """
    out: List[str] = []
    i = 0
    n = len(text)
    in_str = False

    while i < n:
        c = text[i]

        if in_str:
            out.append(c)
            if c == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if c == '"':
                in_str = False
            i += 1
            continue

        if c == '"':
            in_str = True
            out.append(c)
            i += 1
            continue

        if c == "/" and i + 1 < n and text[i + 1] == "/":
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if c == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue

        if c == ",":
            # Trailing comma: next significant char closes the container
            j = i + 1
            while j < n:
                if text[j].isspace():
                    j += 1
                elif text.startswith("//", j):
                    nl = text.find("\n", j)
                    j = n if nl == -1 else nl
                elif text.startswith("/*", j):
                    close = text.find("*/", j + 2)
                    j = n if close == -1 else close + 2
                else:
                    break
            if j < n and text[j] in "}]":
                i += 1
                continue

        out.append(c)
        i += 1

    return "".join(out)


def _get(d: Dict[str, Any], key: str, default: Any = None) -> Any:
    # Case-insensitive field lookup; first match wins
    want = key.casefold()
    for k, v in d.items():
        if isinstance(k, str) and k.casefold() == want:
            return v
    return default


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_name(value: Any) -> str:
    return value if isinstance(value, str) else ""


# -------------------------
# Schema
# -------------------------
def expand_chains(chains: Iterable[Sequence[str]]) -> List[OrderRule]:
    """[m0, m1, ..., mk] -> m1 after m0, m2 after m1, ... Short chains are ignored."""
    rules: List[OrderRule] = []
    for chain in chains:
        if not chain or len(chain) < 2:
            continue
        for i in range(1, len(chain)):
            rules.append(OrderRule(mod=chain[i], must_load_after=(chain[i - 1],)))
    return rules


def _parse_check(item: Any) -> Optional[ModCheck]:
    if not isinstance(item, dict):
        return None
    mod = _as_name(_get(item, "Mod"))
    if not mod.strip():
        return None
    version = _get(item, "Version")
    return ModCheck(
        mod=mod,
        version=version if isinstance(version, str) else None,
        is_required=_get(item, "IsRequired") is True,
    )


def _parse_rule(item: Any) -> Optional[OrderRule]:
    if not isinstance(item, dict):
        return None
    after = tuple(x for x in _as_list(_get(item, "MustLoadAfter")) if isinstance(x, str))
    return OrderRule(mod=_as_name(_get(item, "Mod")), must_load_after=after)


def _parse_chain(item: Any) -> List[str]:
    return [x for x in _as_list(item) if isinstance(x, str)]


def from_json_dict(
    d: Dict[str, Any],
    source: Optional[str] = None,
    path: Optional[str] = None,
) -> RuleSet:
    checks = tuple(c for c in (_parse_check(x) for x in _as_list(_get(d, "ModChecks"))) if c)
    blacklist = unique_names(x for x in _as_list(_get(d, "Blacklist")) if isinstance(x, str))
    explicit = [r for r in (_parse_rule(x) for x in _as_list(_get(d, "OrderRules"))) if r]
    chains = [c for c in (_parse_chain(x) for x in _as_list(_get(d, "LoadOrderChains"))) if len(c) >= 2]
    from_chains = expand_chains(chains)

    return RuleSet(
        mod_checks=checks,
        blacklist=blacklist,
        order_rules=tuple(explicit) + tuple(from_chains),
        source=source,
        path=path,
        explicit_rule_count=len(explicit),
        chains=tuple(tuple(c) for c in chains),
    )


def parse_rules_text(text: str, source: Optional[str] = None, path: Optional[str] = None) -> RuleSet:
    """Raises ValueError when the text is not a JSON object."""
    d = json.loads(strip_json_extras(text))
    if not isinstance(d, dict):
        raise ValueError("rules file must contain a JSON object")
    return from_json_dict(d, source=source, path=path)


def to_json_dict(rules: RuleSet) -> Dict[str, Any]:
    return {
        "ModChecks": [
            {"Mod": c.mod, "Version": c.version, "IsRequired": c.is_required}
            for c in rules.mod_checks
        ],
        "Blacklist": list(rules.blacklist),
        "OrderRules": [
            {"Mod": r.mod, "MustLoadAfter": list(r.must_load_after)}
            for r in rules.explicit_rules
        ],
        "LoadOrderChains": [list(c) for c in rules.chains],
    }


def save_rules(path: str, rules: RuleSet) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(to_json_dict(rules), indent=2), encoding="utf-8")
    return p


# -------------------------
# Resolution
# -------------------------
def override_rules_path(mods_dir: str, fs: Optional[FileSystem] = None) -> str:
    fs = fs or default_fs()
    return fs.join(mods_dir, *RESOURCES_SUBPATH, RULES_FILE)


def base_rules_path(base_dir: str, fs: Optional[FileSystem] = None) -> str:
    fs = fs or default_fs()
    return fs.join(base_dir, RULES_FILE)


def _log_loaded(rules: RuleSet) -> None:
    source = rules.source
    if rules.mod_checks:
        required = sum(1 for c in rules.mod_checks if c.is_required)
        versioned = sum(1 for c in rules.mod_checks if c.version and c.version.strip())
        log.info(
            "Loaded %d mod check(s) from %s (%d required, %d version checks)",
            len(rules.mod_checks), source, required, versioned,
        )

    if rules.blacklist:
        log.info("Loaded %d blacklisted mod(s) from %s", len(rules.blacklist), source)

    for r in rules.explicit_rules:
        log.info("  Rule: '%s' must load after %s", r.mod, ", ".join(f"'{m}'" for m in r.must_load_after))

    for i, chain in enumerate(rules.chains, start=1):
        log.info("  Chain %d: %s", i, " -> ".join(f"'{m}'" for m in chain))

    total = len(rules.order_rules)
    if total:
        log.info(
            "Loaded %d mod load order rule(s) from %s (%d individual, %d from chains)",
            total, source, rules.explicit_rule_count, rules.chain_rule_count,
        )


def load_rules_file(path: str, source: str, fs: Optional[FileSystem] = None) -> RuleSet:
    """
    Parse one rules file. Any read or parse failure is logged and yields
    an empty RuleSet.
    """
    fs = fs or default_fs()
    try:
        text = fs.read_text(path)
        rules = parse_rules_text(text, source=source, path=path)
    except (OSError, ValueError, RecursionError) as e:
        log.warning("Error loading mod order rules: %s", e)
        return RuleSet(source=source, path=path)

    _log_loaded(rules)
    return rules


def resolve_rules(base_dir: str, mods_dir: Optional[str] = None, fs: Optional[FileSystem] = None) -> RuleSet:
    """
    Override file under <mods_dir>/MechWarriorVR/Resources wins entirely;
    otherwise the program directory file; otherwise an empty RuleSet.
    """
    fs = fs or default_fs()

    if mods_dir:
        override = override_rules_path(mods_dir, fs)
        if fs.exists(override):
            log.info("Found %s in %s", RULES_FILE, RESOURCES_LABEL)
            return load_rules_file(override, RESOURCES_LABEL, fs)

    base = base_rules_path(base_dir, fs)
    if not fs.exists(base):
        log.info("No mod order rules file found at %s", base)
        return RuleSet()

    return load_rules_file(base, PROGRAM_DIR_LABEL, fs)
