from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from modvalidator.core.reporting import summary_status
from modvalidator.models import (
    ModInfo,
    OrderViolation,
    RuleSet,
    ValidationResult,
    ValidationSummary,
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def build_manifest_dict(
    tool_name: str,
    tool_version: str,
    mods_dir: str,
    rules: RuleSet,
    mods: List[ModInfo],
    violations: List[OrderViolation],
    findings: List[ValidationResult],
    summary: ValidationSummary,
) -> Dict[str, Any]:
    """JSON-ready snapshot of one validation run."""
    mods_out = [
        {
            "displayName": m.display_name,
            "version": m.version,
            "defaultLoadOrder": m.load_order,
            "directory": m.directory,
            "managedByVortex": m.managed_externally,
            "blacklisted": rules.is_blacklisted(m.display_name),
        }
        for m in mods
    ]

    results_out = [
        {
            "level": r.level,
            "code": r.code,
            "message": r.message,
            "subject": r.subject,
            "related": list(r.related),
        }
        for r in findings
    ]

    summary_out = asdict(summary)
    summary_out.update(
        {
            "has_errors": summary.has_errors,
            "has_warnings": summary.has_warnings,
            "has_issues": summary.has_issues,
            "status": summary_status(summary),
        }
    )

    manifest = {
        "tool": tool_name,
        "version": tool_version,
        "timestamp_utc": _utc_now_iso(),
        "mods_directory": mods_dir,
        "rules_source": rules.source,
        "rules_path": rules.path,
        "summary": summary_out,
        "mods": mods_out,
        "violations": [asdict(v) for v in violations],
        "results": results_out,
    }
    return manifest


def write_manifest_json(manifest: Dict[str, Any], manifest_path: str) -> str:
    path = Path(manifest_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    return str(path)
