"""
Stable-key matching shared by every comparator.

Unmatched old keys are removals, unmatched new keys are additions, and
matched keys are recursed into by the caller.  Output is sorted by key so
changelogs are deterministic across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, Mapping, Optional, TypeVar

T = TypeVar("T")


@dataclass
class KeyedMatch(Generic[T]):
    """Result of matching two keyed collections."""

    removed: list[tuple[str, T]] = field(default_factory=list)
    added: list[tuple[str, T]] = field(default_factory=list)
    matched: list[tuple[str, T, T]] = field(default_factory=list)


def match_by_key(
    old: Optional[Mapping[str, T]], new: Optional[Mapping[str, T]]
) -> KeyedMatch[T]:
    """Match two mappings by key; ``None`` is treated as empty."""
    old = old or {}
    new = new or {}
    result: KeyedMatch[T] = KeyedMatch()
    for key in sorted(set(old) - set(new)):
        result.removed.append((key, old[key]))
    for key in sorted(set(new) - set(old)):
        result.added.append((key, new[key]))
    for key in sorted(set(old) & set(new)):
        result.matched.append((key, old[key], new[key]))
    return result


def index_by(items: Optional[Iterable[T]], key: Callable[[T], str]) -> dict[str, T]:
    """Index *items* by *key*; the last item wins on duplicates."""
    return {key(item): item for item in items or ()}


def match_list(
    old: Optional[Iterable[T]],
    new: Optional[Iterable[T]],
    key: Callable[[T], str],
) -> KeyedMatch[T]:
    return match_by_key(index_by(old, key), index_by(new, key))


def qualify(parent: str, name: str) -> str:
    """Join a dotted path, skipping an empty parent."""
    return f"{parent}.{name}" if parent else name
