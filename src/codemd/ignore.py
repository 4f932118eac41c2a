"""
Ignore-file handling for codemd.

Both ``.gitignore`` and ``.codeignore`` files share one line syntax:

* blank lines and lines starting with ``#`` are skipped
* a leading ``!`` negates the rule
* a trailing ``/`` restricts the rule to directories (and everything below)
* a leading ``/`` anchors the rule to the ignore file's directory; any other
  rule matches at every depth
* ``*``, ``?`` and ``[...]`` match within one path component, ``**`` matches
  zero or more whole components

Every rule is evaluated against a path in the order it was declared and the
last one that matches decides the outcome.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .config import IgnoreConfig
from .errors import IgnoreFileError, PatternSyntaxError

logger = logging.getLogger(__name__)

DOUBLESTAR = "**"

PathLike = Union[str, "os.PathLike[str]"]


class IgnoreFlavor(str, Enum):
    """Ignore-file formats, keyed by their file name."""

    GITIGNORE = ".gitignore"
    CODEIGNORE = ".codeignore"

    @property
    def filename(self) -> str:
        return self.value

    @classmethod
    def from_path(cls, path: PathLike) -> "IgnoreFlavor":
        if Path(path).name == cls.CODEIGNORE.value:
            return cls.CODEIGNORE
        return cls.GITIGNORE


# Single-component globs

def _class_char(segment: str, j: int) -> Tuple[str, int]:
    ch = segment[j]
    if ch in "-]":
        raise PatternSyntaxError(segment, "malformed character class")
    if ch == "\\":
        j += 1
        if j >= len(segment):
            raise PatternSyntaxError(segment, "trailing escape")
        ch = segment[j]
    return ch, j + 1


@lru_cache(maxsize=1024)
def _segment_regex(segment: str) -> "re.Pattern[str]":
    """Translate one glob component into a compiled regular expression.

    Raises :class:`PatternSyntaxError` for unterminated or empty character
    classes, reversed ranges and a dangling ``\\``.
    """
    out: List[str] = []
    i, n = 0, len(segment)
    while i < n:
        c = segment[i]
        i += 1
        if c == "*":
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "\\":
            if i >= n:
                raise PatternSyntaxError(segment, "trailing escape")
            out.append(re.escape(segment[i]))
            i += 1
        elif c == "[":
            negate = i < n and segment[i] in "^!"
            if negate:
                i += 1
            items: List[str] = []
            while True:
                if i >= n:
                    raise PatternSyntaxError(segment, "unterminated character class")
                if segment[i] == "]":
                    if not items:
                        raise PatternSyntaxError(segment, "empty character class")
                    i += 1
                    break
                lo, i = _class_char(segment, i)
                if i < n and segment[i] == "-":
                    if i + 1 >= n:
                        raise PatternSyntaxError(segment, "unterminated character class")
                    hi, i = _class_char(segment, i + 1)
                    if hi < lo:
                        raise PatternSyntaxError(segment, "invalid character range")
                    items.append(f"{re.escape(lo)}-{re.escape(hi)}")
                else:
                    items.append(re.escape(lo))
            out.append("[" + ("^" if negate else "") + "".join(items) + "]")
        else:
            out.append(re.escape(c))
    return re.compile("".join(out), re.DOTALL)


def glob_match(segment: str, name: str) -> bool:
    """Shell-glob match of one pattern component against one path component."""
    return _segment_regex(segment).fullmatch(name) is not None


def match_segments(pattern_segments: Sequence[str], path_segments: Sequence[str]) -> bool:
    """Match ``/``-split pattern components against ``/``-split path components.

    A ``**`` component absorbs zero or more path components. Every possible
    split point is tried, so the worst case is exponential in path depth.
    Glob syntax errors propagate as :class:`PatternSyntaxError`.
    """
    p = s = 0
    while p < len(pattern_segments) and s < len(path_segments):
        if pattern_segments[p] == DOUBLESTAR:
            p += 1
            if p >= len(pattern_segments):
                return True
            for k in range(s, len(path_segments)):
                if glob_match(pattern_segments[p], path_segments[k]) and match_segments(
                    pattern_segments[p:], path_segments[k:]
                ):
                    return True
            return False

        if not glob_match(pattern_segments[p], path_segments[s]):
            return False
        p += 1
        s += 1

    return p == len(pattern_segments) and s == len(path_segments)


# Patterns

@dataclass(frozen=True)
class Pattern:
    """One compiled ignore rule."""

    raw: str
    negative: bool = False
    directory_only: bool = False
    flavor: IgnoreFlavor = IgnoreFlavor.GITIGNORE

    @property
    def anchored(self) -> bool:
        return self.raw.startswith("/")

    @property
    def glob(self) -> str:
        """The form actually matched: ``**/`` in front unless anchored,
        ``/**`` behind for directory-only rules."""
        body = self.raw[1:] if self.anchored else f"{DOUBLESTAR}/{self.raw}"
        if self.directory_only:
            body += f"/{DOUBLESTAR}"
        return body

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.glob.split("/"))

    def validate(self) -> None:
        """Raise :class:`PatternSyntaxError` if any component is not a valid glob."""
        for segment in self.segments:
            if segment != DOUBLESTAR:
                _segment_regex(segment)

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """Test a root-relative, forward-slash path against this rule.

        A directory-only rule matches the contents of a directory; when the
        caller says *rel_path* is itself a directory it matches that too.
        Malformed rules never match.
        """
        if not rel_path:
            return False

        path_segments = rel_path.split("/")
        segments = self.segments
        try:
            if match_segments(segments, path_segments):
                return True
            if is_dir and self.directory_only:
                return match_segments(segments[:-1], path_segments)
        except PatternSyntaxError as e:
            logger.debug("Pattern %r from %s never matches: %s", self.raw, self.flavor.filename, e)
        return False


def compile_pattern(line: str, flavor: IgnoreFlavor = IgnoreFlavor.GITIGNORE) -> Optional[Pattern]:
    """Parse one ignore-file line. Returns ``None`` for blanks and comments."""
    body = line.strip()
    if not body or body.startswith("#"):
        return None

    negative = body.startswith("!")
    if negative:
        body = body[1:]

    directory_only = body.endswith("/")
    if directory_only:
        body = body[:-1]

    return Pattern(raw=body, negative=negative, directory_only=directory_only, flavor=flavor)


# Path normalisation

def relative_path(root: Path, path: PathLike) -> Optional[str]:
    """Return *path* relative to *root* with forward slashes.

    Relative inputs are taken to be relative to *root* already. Returns
    ``None`` when the path is empty or lies outside *root*.
    """
    if not os.fspath(path):
        return None

    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = root / candidate
    candidate = Path(os.path.normpath(candidate))

    try:
        return candidate.relative_to(root).as_posix()
    except ValueError:
        return None


# Ignore sets

class IgnoreSet:
    """Ordered ignore rules for one ignore-file scope.

    Rules are kept in declaration order and evaluated in full for every
    lookup; the last rule that matches wins. Lookups do not mutate state, so
    a populated set can be shared between readers. :meth:`add_pattern` is
    meant for construction only.
    """

    def __init__(
        self,
        root: PathLike,
        flavor: IgnoreFlavor = IgnoreFlavor.GITIGNORE,
        config: Optional[IgnoreConfig] = None,
        patterns: Iterable[str] = (),
    ):
        self.root = Path(os.path.abspath(root))
        self.flavor = flavor
        self.config = config or IgnoreConfig()
        self._patterns: List[Pattern] = []
        for line in patterns:
            self.add_pattern(line)

    def __repr__(self) -> str:
        return f"IgnoreSet(root={str(self.root)!r}, flavor={self.flavor.name}, patterns={len(self)})"

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    @property
    def patterns(self) -> Tuple[Pattern, ...]:
        return tuple(self._patterns)

    @classmethod
    def from_lines(
        cls,
        root: PathLike,
        lines: Iterable[str],
        flavor: IgnoreFlavor = IgnoreFlavor.GITIGNORE,
        config: Optional[IgnoreConfig] = None,
    ) -> "IgnoreSet":
        """Build a set from ignore-file lines already in memory."""
        return cls(root, flavor=flavor, config=config, patterns=lines)

    @classmethod
    def load_from_file(
        cls,
        path: PathLike,
        flavor: Optional[IgnoreFlavor] = None,
        root: Optional[PathLike] = None,
        config: Optional[IgnoreConfig] = None,
    ) -> "IgnoreSet":
        """Read an ignore file into a new set.

        Args:
            path: Ignore file to read
            flavor: File format; inferred from the file name when omitted
            root: Directory paths are made relative to; defaults to the
                file's own directory
            config: Options for the new set

        Raises:
            IgnoreFileError: The file is missing or unreadable
            PatternSyntaxError: A rule is malformed and ``config.strict`` is set
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as fh:
                lines = [ln.strip() for ln in fh]
        except (OSError, UnicodeDecodeError) as e:
            raise IgnoreFileError(f"Could not read ignore file '{path}': {e}") from e

        ignore_set = cls(
            root if root is not None else path.parent.absolute(),
            flavor=flavor or IgnoreFlavor.from_path(path),
            config=config,
        )
        for line in lines:
            ignore_set.add_pattern(line)

        logger.info("Loaded %d patterns from %s", len(ignore_set), path)
        return ignore_set

    def add_pattern(self, line: str) -> Optional[Pattern]:
        """Compile *line* and append it. Blank and comment lines are skipped."""
        pattern = compile_pattern(line, self.flavor)
        if pattern is None:
            return None
        if self.config.strict:
            pattern.validate()
        self._patterns.append(pattern)
        return pattern

    def match(self, path: PathLike, is_dir: bool = False) -> Optional[Pattern]:
        """Return the last rule matching *path*, or ``None``."""
        rel_path = relative_path(self.root, path)
        if not rel_path:
            return None

        last_match: Optional[Pattern] = None
        for pattern in self._patterns:
            if pattern.matches(rel_path, is_dir):
                last_match = pattern
        return last_match

    def should_ignore(self, path: PathLike, is_dir: bool = False) -> bool:
        """Decide whether *path* is excluded by this set.

        Args:
            path: Absolute path, or a path relative to :attr:`root`
            is_dir: Whether *path* names a directory

        Returns:
            True if the last matching rule is not a negation
        """
        if not self.config.enabled:
            return False

        last_match = self.match(path, is_dir)
        if last_match is None:
            return False
        return not last_match.negative
