from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from typing import List, Optional

from modvalidator.config import APP_NAME, APP_VERSION, expand_path, load_config, program_dir
from modvalidator.core.engine import ModValidationEngine
from modvalidator.core.manifest import build_manifest_dict, write_manifest_json
from modvalidator.core.reporting import build_report_html, summary_issue_lines, write_report_html
from modvalidator.logs import configure_logging
from modvalidator.models import ValidationSummary

EXIT_OK = 0
EXIT_WARNINGS = 1
EXIT_ERRORS = 2


def exit_code_for(summary: ValidationSummary) -> int:
    if summary.has_errors:
        return EXIT_ERRORS
    if summary.has_warnings:
        return EXIT_WARNINGS
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="modvalidator",
        description="Validate installed mods against a rule set (required mods, versions, blacklist, load order).",
    )
    p.add_argument("--mods-dir", help="Mods directory to scan (environment variables are expanded)")
    p.add_argument("--base-dir", help="Directory holding the default rules file (default: program directory)")
    p.add_argument("--config", help="Path to a modvalidator_config.json")
    p.add_argument("--report", help="Write an HTML report to this path")
    p.add_argument("--manifest", help="Write a JSON snapshot of the run to this path")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument("--no-gui", action="store_true", help="Run once in the console and exit")
    p.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return p


def run_console(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    configure_logging(args.log_level or cfg.log_level)

    mods_dir = expand_path(args.mods_dir or cfg.mods_directory)
    base_dir = expand_path(args.base_dir or cfg.rules_directory) or str(program_dir())

    engine = ModValidationEngine(base_dir)
    mods = engine.scan_installed_mods(mods_dir)
    summary = engine.last_summary()

    issues = summary_issue_lines(summary)
    if not mods_dir or not os.path.isdir(mods_dir):
        print(f"Mods folder not found: {mods_dir or '(empty)'}")
    elif issues:
        print("Mod validation issues detected:")
        for line in issues:
            print(f"  - {line}")
    else:
        print(f"Mod validation OK ({len(mods)} mod(s))")

    rules = engine.rules
    if args.report:
        html_text = build_report_html(
            tool_name=APP_NAME,
            tool_version=APP_VERSION,
            mods_dir=mods_dir,
            rules_source=rules.source,
            mods=mods,
            findings=engine.last_findings(),
            summary=summary,
            blacklist=rules.blacklist,
        )
        print(f"Report written: {write_report_html(html_text, args.report)}")

    if args.manifest:
        manifest = build_manifest_dict(
            tool_name=APP_NAME,
            tool_version=APP_VERSION,
            mods_dir=mods_dir,
            rules=rules,
            mods=mods,
            violations=engine.last_violations(),
            findings=engine.last_findings(),
            summary=summary,
        )
        print(f"Manifest written: {write_manifest_json(manifest, args.manifest)}")

    return exit_code_for(summary)


def run_gui(args: argparse.Namespace) -> int:
    from PySide6.QtWidgets import QApplication

    from modvalidator.ui.main_window import MainWindow

    cfg = load_config(args.config)
    if args.base_dir:
        cfg = replace(cfg, rules_directory=args.base_dir)
    configure_logging(args.log_level or cfg.log_level)

    app = QApplication.instance() or QApplication(sys.argv)
    window = MainWindow(config=cfg, config_path=args.config)
    if args.mods_dir:
        window.mods_edit.setText(args.mods_dir)
    window.show()
    return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.no_gui:
            return run_console(args)
        return run_gui(args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
