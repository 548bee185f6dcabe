"""
Exclusion-pattern matching for treecat.
"""

from __future__ import annotations

import re
import sys
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

try:
    import pathspec  # type: ignore
except ImportError:  # pragma: no cover
    sys.stderr.write(
        "Error: 'pathspec' library is required. Install via 'pip install pathspec'.\n"
    )
    sys.exit(1)


class BadPatternError(ValueError):
    """Raised when a glob pattern cannot be translated."""


def _class_char(pattern: str, i: int) -> Tuple[str, int]:
    if i >= len(pattern):
        raise BadPatternError(f"unterminated character class in {pattern!r}")
    c = pattern[i]
    if c in "-]":
        raise BadPatternError(f"unexpected {c!r} in character class of {pattern!r}")
    if c == "\\":
        i += 1
        if i >= len(pattern):
            raise BadPatternError(f"dangling escape in {pattern!r}")
        c = pattern[i]
    return c, i + 1


def _translate_class(pattern: str, i: int) -> Tuple[str, int]:
    """Translate ``[...]`` starting just after the ``[``; return (regex, next index)."""
    negate = False
    if i < len(pattern) and pattern[i] == "^":
        negate = True
        i += 1

    ranges: List[Tuple[str, str]] = []
    while True:
        if i >= len(pattern):
            raise BadPatternError(f"unterminated character class in {pattern!r}")
        if pattern[i] == "]" and ranges:
            i += 1
            break
        lo, i = _class_char(pattern, i)
        hi = lo
        if i < len(pattern) and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
        ranges.append((lo, hi))

    # reversed ranges never match anything
    items = "".join(
        re.escape(lo) if lo == hi else f"{re.escape(lo)}-{re.escape(hi)}"
        for lo, hi in ranges
        if lo <= hi
    )
    if not items:
        return ("(?s:.)" if negate else "(?!)"), i
    return (f"[^{items}]" if negate else f"[{items}]"), i


@lru_cache(maxsize=512)
def translate(pattern: str) -> "re.Pattern[str]":
    """
    Compile a shell glob into a regex anchored on the whole path.

    ``*`` and ``?`` never cross a ``/``; ``[...]`` classes support ranges and
    ``^`` negation; a backslash escapes the next character.
    """
    out: List[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            while i < n and pattern[i] == "*":
                i += 1
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            if i >= n:
                raise BadPatternError(f"dangling escape in {pattern!r}")
            out.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            regex, i = _translate_class(pattern, i)
            out.append(regex)
        else:
            out.append(re.escape(c))
    return re.compile("".join(out) + r"\Z", re.DOTALL)


def glob_match(pattern: str, name: str) -> bool:
    """Return True if *name* matches *pattern*; malformed patterns never match."""
    try:
        regex = translate(pattern)
    except BadPatternError:
        return False
    return regex.match(name) is not None


def matches(rel_path: str, patterns: Iterable[str]) -> bool:
    """
    Return True if *rel_path* is excluded by any of *patterns*.

    A pattern ending in ``/`` also matches every path that starts with the
    pattern text minus the slash.
    """
    for pattern in patterns:
        if glob_match(pattern, rel_path):
            return True
        if pattern.endswith("/") and rel_path.startswith(pattern[:-1]):
            return True
    return False


class IgnoreRules:
    """Exclusion predicate consulted by the tree walker."""

    def __init__(self, patterns: Sequence[str], gitignore_semantics: bool = False):
        self.patterns: List[str] = list(patterns)
        self.gitignore_semantics = gitignore_semantics
        self._spec: Optional[pathspec.GitIgnoreSpec] = None
        if gitignore_semantics:
            self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def excludes(self, rel_path: str, is_dir: bool = False) -> bool:
        if self._spec is not None:
            # trailing slash lets directory-only patterns ("build/") apply
            return self._spec.match_file(rel_path + "/" if is_dir else rel_path)
        return matches(rel_path, self.patterns)

    def __repr__(self) -> str:
        mode = "gitignore" if self.gitignore_semantics else "glob"
        return f"IgnoreRules({len(self.patterns)} patterns, mode={mode})"
