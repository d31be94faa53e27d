from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from modvalidator.config import DEFAULT_LOAD_ORDER, UNKNOWN_VERSION
from modvalidator.core.names import name_key, name_set


@dataclass(frozen=True)
class ModInfo:
    display_name: str
    version: str = UNKNOWN_VERSION
    load_order: int = DEFAULT_LOAD_ORDER   # lower loads earlier
    directory: str = ""
    managed_externally: bool = False       # Vortex marker present


@dataclass(frozen=True)
class ModCheck:
    mod: str
    version: Optional[str] = None
    is_required: bool = False


@dataclass(frozen=True)
class OrderRule:
    mod: str
    must_load_after: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleSet:
    mod_checks: Tuple[ModCheck, ...] = ()
    blacklist: Tuple[str, ...] = ()           # as written in the rules file
    order_rules: Tuple[OrderRule, ...] = ()   # explicit first, then chain-expanded
    source: Optional[str] = None              # e.g. "program directory"
    path: Optional[str] = None
    explicit_rule_count: int = 0
    chains: Tuple[Tuple[str, ...], ...] = ()  # only chains of two or more

    @property
    def chain_rule_count(self) -> int:
        return len(self.order_rules) - self.explicit_rule_count

    @property
    def explicit_rules(self) -> Tuple[OrderRule, ...]:
        return self.order_rules[: self.explicit_rule_count]

    @property
    def blacklist_keys(self) -> FrozenSet[str]:
        return name_set(self.blacklist)

    def is_blacklisted(self, name: str) -> bool:
        return name_key(name) in self.blacklist_keys

    @property
    def is_empty(self) -> bool:
        return not (self.mod_checks or self.blacklist or self.order_rules)


@dataclass(frozen=True)
class OrderViolation:
    mod: str              # dependent
    required_before: str  # dependency that should load earlier
    mod_order: int
    required_order: int


@dataclass(frozen=True)
class ValidationSummary:
    missing_required_mods: int = 0
    version_mismatches: int = 0
    blacklisted_mods: int = 0
    load_order_violations: int = 0

    @property
    def has_errors(self) -> bool:
        return self.missing_required_mods > 0

    @property
    def has_warnings(self) -> bool:
        return (
            self.version_mismatches > 0
            or self.blacklisted_mods > 0
            or self.load_order_violations > 0
        )

    @property
    def has_issues(self) -> bool:
        return self.has_errors or self.has_warnings


@dataclass(frozen=True)
class ValidationResult:
    level: str  # INFO | WARNING | ERROR
    code: str   # stable short identifier (e.g. MOD_MISSING)
    message: str
    subject: Optional[str] = None  # mod name when applicable
    related: Tuple[str, ...] = ()  # other mods involved
