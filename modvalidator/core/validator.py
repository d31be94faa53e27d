from __future__ import annotations

from typing import Dict, Iterable, List

from modvalidator.core.names import name_key
from modvalidator.models import ModInfo, OrderRule, OrderViolation


def mod_lookup(mods: Iterable[ModInfo]) -> Dict[str, ModInfo]:
    # Case-insensitive by display name; a later duplicate replaces an earlier one
    return {name_key(m.display_name): m for m in mods}


def validate_load_order(mods: List[ModInfo], order_rules: Iterable[OrderRule]) -> List[OrderViolation]:
    """
    Pairwise check of every rule against installed mods. A dependency must
    have a strictly lower load order than the mod that depends on it.

    Rules naming a mod that is not installed don't apply. Contradictory
    rules are not detected as a cycle; each side reports on its own.
    """
    lookup = mod_lookup(mods)
    violations: List[OrderViolation] = []

    for rule in order_rules:
        main = lookup.get(name_key(rule.mod))
        if main is None:
            continue

        for before in rule.must_load_after:
            dep = lookup.get(name_key(before))
            if dep is None:
                continue

            if dep.load_order >= main.load_order:
                violations.append(
                    OrderViolation(
                        mod=main.display_name,
                        required_before=dep.display_name,
                        mod_order=main.load_order,
                        required_order=dep.load_order,
                    )
                )

    return violations
