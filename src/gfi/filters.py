from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from .errors import InputShapeError
from .models import EntryKind

Matcher = Callable[[str], bool]


class KindFilter(str, Enum):
    BOTH = "both"
    FILES = "files"
    DIRS = "dirs"

    @classmethod
    def from_flags(cls, files_only: bool, dirs_only: bool) -> "KindFilter":
        # Both flags set means "everything", like neither.
        if files_only and not dirs_only:
            return cls.FILES
        if dirs_only and not files_only:
            return cls.DIRS
        return cls.BOTH

    def accepts(self, kind: EntryKind) -> bool:
        if self is KindFilter.FILES:
            return kind is EntryKind.FILE
        if self is KindFilter.DIRS:
            return kind is EntryKind.DIRECTORY
        return True


def compile_patterns(patterns: Iterable[str]) -> Matcher | None:
    """Compile regex strings into one predicate matching if any pattern is found.

    Returns None for an empty pattern list so callers can tell "no filter"
    apart from "filter that matches nothing".
    """
    pats = [p for p in patterns if p]
    if not pats:
        return None
    try:
        rx = re.compile("|".join(f"(?:{p})" for p in pats))
    except re.error as e:
        raise InputShapeError(f"Compile error ({pats}) [{e}]") from e
    return lambda s: rx.search(s) is not None


@dataclass(frozen=True)
class EntryFilter:
    """Include/exclude predicates plus a kind filter.

    Exclusion wins over inclusion. With no include predicate every entry that
    is not excluded passes.
    """

    include: Matcher | None = None
    exclude: Matcher | None = None
    kind: KindFilter = KindFilter.BOTH

    @classmethod
    def from_patterns(
        cls,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        kind: KindFilter = KindFilter.BOTH,
    ) -> "EntryFilter":
        return cls(include=compile_patterns(include), exclude=compile_patterns(exclude), kind=kind)

    def match_key(self, key: str) -> bool:
        if self.exclude is not None and self.exclude(key):
            return False
        if self.include is not None and not self.include(key):
            return False
        return True

    def accepts(self, key: str, kind: EntryKind) -> bool:
        return self.kind.accepts(kind) and self.match_key(key)


ALLOW_ALL = EntryFilter()
