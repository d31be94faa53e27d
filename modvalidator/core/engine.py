from __future__ import annotations

import logging
from typing import Callable, List, Optional

from modvalidator.core.fs import FileSystem, default_fs
from modvalidator.core.reporting import (
    build_findings,
    find_blacklisted,
    find_missing_required,
    find_version_mismatches,
    summarize,
)
from modvalidator.core.rules import resolve_rules
from modvalidator.core.scanner import scan_mods
from modvalidator.core.validator import validate_load_order
from modvalidator.logs import CallbackHandler, package_logger
from modvalidator.models import (
    ModInfo,
    OrderViolation,
    RuleSet,
    ValidationResult,
    ValidationSummary,
)

log = logging.getLogger("modvalidator.engine")


class ModValidationEngine:
    """
    Drives one resolve -> scan -> validate -> summarize cycle at a time.

    Holds the most recently resolved RuleSet and the results of the last
    scan. Not safe to share between threads; use one engine per caller.
    """

    def __init__(self, base_dir: str, fs: Optional[FileSystem] = None):
        self.base_dir = base_dir
        self.fs = fs or default_fs()

        self._rules = RuleSet()
        self._mods: List[ModInfo] = []
        self._violations: List[OrderViolation] = []
        self._findings: List[ValidationResult] = []
        self._summary = ValidationSummary()

        package_logger()
        self.reload_rules()

    # -------------------------
    # Rules
    # -------------------------
    @property
    def rules(self) -> RuleSet:
        return self._rules

    def reload_rules(self, mods_dir: Optional[str] = None) -> RuleSet:
        self._rules = resolve_rules(self.base_dir, mods_dir, self.fs)
        return self._rules

    def is_blacklisted(self, name: str) -> bool:
        return self._rules.is_blacklisted(name)

    def blacklisted_mods(self) -> List[str]:
        return list(self._rules.blacklist)

    # -------------------------
    # Last scan
    # -------------------------
    def last_summary(self) -> ValidationSummary:
        return self._summary

    def last_mods(self) -> List[ModInfo]:
        return list(self._mods)

    def last_violations(self) -> List[OrderViolation]:
        return list(self._violations)

    def last_findings(self) -> List[ValidationResult]:
        return list(self._findings)

    # -------------------------
    # Scan
    # -------------------------
    def scan_installed_mods(
        self,
        mods_dir: Optional[str],
        extra_log: Optional[Callable[[str], None]] = None,
    ) -> List[ModInfo]:
        """
        Scan mods_dir and validate it against the rules resolved for it.
        Never raises; trouble shows up in the log and in last_summary().
        """
        self._mods = []
        self._violations = []
        self._findings = []
        self._summary = ValidationSummary()

        if not mods_dir or not self.fs.is_dir(mods_dir):
            return []

        handler = None
        if extra_log is not None:
            handler = CallbackHandler(extra_log)
            package_logger().addHandler(handler)

        mods: List[ModInfo] = []
        try:
            # Override rules live inside the mods directory, so resolve per scan
            rules = self.reload_rules(mods_dir)

            log.info("Scanning for installed mods in: %s", mods_dir)
            mods = scan_mods(mods_dir, self.fs)
            self._mods = mods

            self._log_mods(mods, rules)
            self._log_checks(mods, rules)

            violations = validate_load_order(mods, rules.order_rules)
            self._log_violations(violations, rules)

            self._violations = violations
            self._summary = summarize(mods, rules.mod_checks, rules.blacklist, violations)
            self._findings = build_findings(mods, rules.mod_checks, rules.blacklist, violations)
        except Exception as e:
            # Rules from an earlier directory must not annotate this scan
            self._rules = RuleSet()
            log.error("Error scanning mods: %s", e)
        finally:
            if handler is not None:
                package_logger().removeHandler(handler)

        return mods

    def _log_mods(self, mods: List[ModInfo], rules: RuleSet) -> None:
        if not mods:
            log.info("No mods found in the mods directory")
            return

        log.info("Found %d installed mod(s):", len(mods))
        for m in mods:
            vortex = " [Vortex]" if m.managed_externally else ""
            flag = " ⚠" if rules.is_blacklisted(m.display_name) else ""
            log.info("  [%d] %s v%s%s%s", m.load_order, m.display_name, m.version, vortex, flag)

        managed = sum(1 for m in mods if m.managed_externally)
        if managed:
            log.info("Note: %d mod(s) are managed by Vortex Mod Manager", managed)

        blacklisted = find_blacklisted(mods, rules.blacklist)
        if blacklisted:
            log.warning("WARNING: %d blacklisted/incompatible mod(s) detected:", len(blacklisted))
            for m in blacklisted:
                log.warning("  %s", m.display_name)

    def _log_checks(self, mods: List[ModInfo], rules: RuleSet) -> None:
        if not rules.mod_checks:
            return

        missing = find_missing_required(mods, rules.mod_checks)
        if missing:
            log.error("ERROR: %d required mod(s) are missing:", len(missing))
            for name in missing:
                log.error("  %s", name)

        mismatches = find_version_mismatches(mods, rules.mod_checks)
        if mismatches:
            log.warning("WARNING: %d mod(s) have incorrect version:", len(mismatches))
            for name, expected, actual in mismatches:
                log.warning("  %s - Expected: v%s, Installed: v%s", name, expected, actual)

        required = sum(1 for c in rules.mod_checks if c.is_required)
        if required and not missing:
            log.info("Mod validation passed - all %d required mod(s) found", required)

    def _log_violations(self, violations: List[OrderViolation], rules: RuleSet) -> None:
        if not rules.order_rules:
            return

        if not violations:
            log.info("Load order validation passed - all %d rule(s) satisfied", len(rules.order_rules))
            return

        log.warning("WARNING: %d mod load order violation(s) detected:", len(violations))
        for v in violations:
            log.warning(
                "  [%d] %s must load BEFORE [%d] %s",
                v.required_order, v.required_before, v.mod_order, v.mod,
            )
