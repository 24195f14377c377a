"""Typed tag predicates.

Classification rules such as "any landuse except military" are expressed as
small immutable predicate objects and composed with ``&``, ``|`` and ``~``.
They are built once at import time and shared freely.

Examples:
    >>> landuse = tag('landuse') & ~tag('landuse', 'military')
    >>> landuse.matches({'landuse': 'farmland'})
    True
    >>> landuse.matches({'landuse': 'military'})
    False
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple


class TagMatch(ABC):
    """Base class for boolean tests over a tag mapping."""

    @abstractmethod
    def matches(self, tags: Mapping[str, str]) -> bool:
        ...

    def __call__(self, tags: Mapping[str, str]) -> bool:
        return self.matches(tags)

    def __and__(self, other: "TagMatch") -> "TagMatch":
        return AllOf((self, other))

    def __or__(self, other: "TagMatch") -> "TagMatch":
        return AnyOf((self, other))

    def __invert__(self) -> "TagMatch":
        return Not(self)


@dataclass(frozen=True)
class HasKey(TagMatch):
    """Key is present with any value (``key=*``)."""

    key: str

    def matches(self, tags: Mapping[str, str]) -> bool:
        return self.key in tags


@dataclass(frozen=True)
class TagEquals(TagMatch):
    """Key is present with exactly this value (``key=value``)."""

    key: str
    value: str

    def matches(self, tags: Mapping[str, str]) -> bool:
        return tags.get(self.key) == self.value


@dataclass(frozen=True)
class Not(TagMatch):
    inner: TagMatch

    def matches(self, tags: Mapping[str, str]) -> bool:
        return not self.inner.matches(tags)


@dataclass(frozen=True)
class AllOf(TagMatch):
    parts: Tuple[TagMatch, ...]

    def matches(self, tags: Mapping[str, str]) -> bool:
        return all(part.matches(tags) for part in self.parts)


@dataclass(frozen=True)
class AnyOf(TagMatch):
    parts: Tuple[TagMatch, ...]

    def matches(self, tags: Mapping[str, str]) -> bool:
        return any(part.matches(tags) for part in self.parts)


def tag(key: str, value: Optional[str] = None) -> TagMatch:
    """Build ``key=*`` when no value is given, ``key=value`` otherwise."""
    if value is None:
        return HasKey(key)
    return TagEquals(key, value)


def any_of(*parts: TagMatch) -> TagMatch:
    return AnyOf(tuple(parts))


def all_of(*parts: TagMatch) -> TagMatch:
    return AllOf(tuple(parts))


__all__ = [
    'TagMatch',
    'HasKey',
    'TagEquals',
    'Not',
    'AllOf',
    'AnyOf',
    'tag',
    'any_of',
    'all_of',
]
