from __future__ import annotations

from typing import Iterable, FrozenSet, Tuple


def name_key(name: str) -> str:
    # Every mod-name comparison goes through here
    return (name or "").casefold()


def name_set(names: Iterable[str]) -> FrozenSet[str]:
    return frozenset(name_key(n) for n in names if n and n.strip())


def unique_names(names: Iterable[str]) -> Tuple[str, ...]:
    """Drop blanks and case-insensitive duplicates, keeping first spelling."""
    seen = set()
    out = []
    for n in names:
        if not n or not n.strip():
            continue
        k = name_key(n)
        if k in seen:
            continue
        seen.add(k)
        out.append(n)
    return tuple(out)
