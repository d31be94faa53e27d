# -*- coding: utf-8 -*-
from __future__ import annotations

import html
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from modvalidator.core.names import name_key, name_set
from modvalidator.models import (
    ModCheck,
    ModInfo,
    OrderViolation,
    ValidationResult,
    ValidationSummary,
)

# (mod as named in the check, expected version, installed version)
VersionMismatch = Tuple[str, str, str]


# -------------------------
# Findings
# -------------------------
def check_lookup(mods: Iterable[ModInfo]) -> Dict[str, ModInfo]:
    # Checks match the earliest-loading mod when display names repeat
    lookup: Dict[str, ModInfo] = {}
    for m in sorted(mods, key=lambda m: m.load_order):
        lookup.setdefault(name_key(m.display_name), m)
    return lookup


def find_missing_required(mods: List[ModInfo], checks: Iterable[ModCheck]) -> List[str]:
    installed = check_lookup(mods)
    return [c.mod for c in checks if c.is_required and name_key(c.mod) not in installed]


def find_version_mismatches(mods: List[ModInfo], checks: Iterable[ModCheck]) -> List[VersionMismatch]:
    """Optional mods are version-checked too, as long as they are installed."""
    installed = check_lookup(mods)
    out: List[VersionMismatch] = []
    for c in checks:
        mod = installed.get(name_key(c.mod))
        if mod is None or not c.version or not c.version.strip():
            continue
        if mod.version.casefold() != c.version.casefold():
            out.append((c.mod, c.version, mod.version))
    return out


def find_blacklisted(mods: List[ModInfo], blacklist: Iterable[str]) -> List[ModInfo]:
    keys = name_set(blacklist)
    return [m for m in mods if name_key(m.display_name) in keys]


def summarize(
    mods: List[ModInfo],
    checks: Iterable[ModCheck],
    blacklist: Iterable[str],
    violations: List[OrderViolation],
) -> ValidationSummary:
    checks = list(checks)
    return ValidationSummary(
        missing_required_mods=len(find_missing_required(mods, checks)),
        version_mismatches=len(find_version_mismatches(mods, checks)),
        blacklisted_mods=len(find_blacklisted(mods, blacklist)),
        load_order_violations=len(violations),
    )


def build_findings(
    mods: List[ModInfo],
    checks: Iterable[ModCheck],
    blacklist: Iterable[str],
    violations: List[OrderViolation],
) -> List[ValidationResult]:
    checks = list(checks)
    results: List[ValidationResult] = []

    for name in find_missing_required(mods, checks):
        results.append(
            ValidationResult(
                level="ERROR",
                code="MOD_MISSING",
                message=f"Required mod is not installed: {name}",
                subject=name,
            )
        )

    for name, expected, actual in find_version_mismatches(mods, checks):
        results.append(
            ValidationResult(
                level="WARNING",
                code="VERSION_MISMATCH",
                message=f"{name} - Expected: v{expected}, Installed: v{actual}",
                subject=name,
            )
        )

    for m in find_blacklisted(mods, blacklist):
        results.append(
            ValidationResult(
                level="WARNING",
                code="MOD_BLACKLISTED",
                message=f"Blacklisted/incompatible mod installed: {m.display_name}",
                subject=m.display_name,
            )
        )

    for v in violations:
        results.append(
            ValidationResult(
                level="WARNING",
                code="LOAD_ORDER_VIOLATION",
                message=(
                    f"[{v.required_order}] {v.required_before} must load BEFORE "
                    f"[{v.mod_order}] {v.mod}"
                ),
                subject=v.mod,
                related=(v.required_before,),
            )
        )

    return results


# -------------------------
# Presentation helpers
# -------------------------
def summary_status(summary: ValidationSummary) -> str:
    if summary.has_errors:
        return "error"
    if summary.has_warnings:
        return "warning"
    return "ok"


def summary_issue_lines(summary: ValidationSummary) -> List[str]:
    lines = []
    if summary.missing_required_mods > 0:
        lines.append(f"{summary.missing_required_mods} required mod(s) missing")
    if summary.version_mismatches > 0:
        lines.append(f"{summary.version_mismatches} version mismatch(es)")
    if summary.blacklisted_mods > 0:
        lines.append(f"{summary.blacklisted_mods} blacklisted mod(s)")
    if summary.load_order_violations > 0:
        lines.append(f"{summary.load_order_violations} load order violation(s)")
    return lines


# -------------------------
# HTML report
# -------------------------
_REPORT_CSS = """
body { font-family: Segoe UI, Helvetica, Arial, sans-serif; margin: 28px; color: #222; }
header { border-bottom: 2px solid #333; padding-bottom: 8px; margin-bottom: 16px; }
header p { margin: 4px 0 0 0; color: #555; font-size: 13px; }
section { margin: 20px 0; }
dl.meta { display: grid; grid-template-columns: max-content 1fr; gap: 4px 16px; font-size: 13px; }
dl.meta dt { color: #666; }
dl.meta dd { margin: 0; font-family: Consolas, monospace; }
.tiles { display: flex; gap: 12px; flex-wrap: wrap; }
.tile { border: 1px solid #ccc; border-radius: 6px; padding: 10px 14px; min-width: 150px; }
.tile b { display: block; font-size: 22px; }
.tile.bad { border-color: #c33; background: #fdeeee; }
.tile.warn { border-color: #c90; background: #fff8e6; }
table { width: 100%; border-collapse: collapse; font-size: 13px; }
th { text-align: left; background: #f0f0f0; padding: 6px 8px; }
td { padding: 6px 8px; border-top: 1px solid #e6e6e6; vertical-align: top; }
.lvl { font-weight: 700; font-size: 11px; padding: 1px 6px; border-radius: 4px; }
.lvl-ERROR { background: #c33; color: #fff; }
.lvl-WARNING { background: #e0a800; color: #222; }
.lvl-INFO { background: #d8e6f5; color: #123; }
.muted { color: #777; font-size: 12px; }
.status-ok { color: #1a7f37; }
.status-warning { color: #9a6700; }
.status-error { color: #c33; }
"""

_LEVEL_ORDER = ("ERROR", "WARNING", "INFO")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _esc(s: Any) -> str:
    return html.escape("" if s is None else str(s))


def _level_tag(level: str) -> str:
    lvl = (level or "INFO").upper()
    if lvl not in _LEVEL_ORDER:
        lvl = "INFO"
    return f'<span class="lvl lvl-{lvl}">{lvl}</span>'


def _tile(label: str, count: int, kind: str) -> str:
    css = f"tile {kind}" if count else "tile"
    return f'<div class="{css}"><b>{count}</b>{_esc(label)}</div>'


def _findings_table(findings: List[ValidationResult]) -> str:
    if not findings:
        return "<p class='muted'>No findings.</p>"

    ordered = sorted(
        findings,
        key=lambda r: _LEVEL_ORDER.index(r.level.upper()) if r.level.upper() in _LEVEL_ORDER else len(_LEVEL_ORDER),
    )
    rows = "".join(
        f"<tr><td>{_level_tag(r.level)}</td><td>{_esc(r.code)}</td>"
        f"<td>{_esc(r.subject or '')}</td><td>{_esc(r.message)}</td></tr>"
        for r in ordered
    )
    return (
        "<table><thead><tr><th>Level</th><th>Code</th><th>Mod</th><th>Details</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def _mods_table(mods: List[ModInfo], blacklisted: FrozenSet[str]) -> str:
    if not mods:
        return "<p class='muted'>No mods found.</p>"

    rows = []
    for m in mods:
        notes = []
        if m.managed_externally:
            notes.append("Vortex")
        if name_key(m.display_name) in blacklisted:
            notes.append(_level_tag("WARNING") + " blacklisted")
        rows.append(
            f"<tr><td>{m.load_order}</td><td>{_esc(m.display_name)}</td>"
            f"<td>{_esc(m.version)}</td><td>{' '.join(notes)}</td></tr>"
        )
    return (
        "<table><thead><tr><th>Order</th><th>Name</th><th>Version</th><th>Notes</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
    )


def build_report_html(
    tool_name: str,
    tool_version: str,
    mods_dir: str,
    rules_source: Optional[str],
    mods: List[ModInfo],
    findings: List[ValidationResult],
    summary: ValidationSummary,
    blacklist: Iterable[str] = (),
) -> str:
    """Standalone HTML page for one scan: run details, counts, findings and the mod list."""
    status = summary_status(summary)
    tiles = "".join(
        [
            _tile("missing required", summary.missing_required_mods, "bad"),
            _tile("version mismatches", summary.version_mismatches, "warn"),
            _tile("blacklisted", summary.blacklisted_mods, "warn"),
            _tile("load order violations", summary.load_order_violations, "warn"),
        ]
    )

    return f"""<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>{_esc(tool_name)} - Mod Validation Report</title>
<style>{_REPORT_CSS}</style>
</head>
<body>
<header>
  <h1>Mod Validation Report</h1>
  <p>{_esc(tool_name)} {_esc(tool_version)} - generated {_esc(_utc_now())} UTC</p>
</header>

<section>
  <dl class="meta">
    <dt>Mods directory</dt><dd>{_esc(mods_dir)}</dd>
    <dt>Rules</dt><dd>{_esc(rules_source or "none")}</dd>
    <dt>Result</dt><dd class="status-{status}">{status.upper()}</dd>
  </dl>
</section>

<section>
  <h2>Validation Summary</h2>
  <div class="tiles">{tiles}</div>
</section>

<section>
  <h2>Findings</h2>
  {_findings_table(findings)}
</section>

<section>
  <h2>Installed Mods</h2>
  <p class="muted">{len(mods)} mod(s), lowest load order first</p>
  {_mods_table(mods, name_set(blacklist))}
</section>
</body>
</html>
"""


def write_report_html(html_text: str, report_path: str) -> str:
    path = Path(report_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html_text, encoding="utf-8")
    return str(path)
