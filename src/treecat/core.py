"""
Core logic for treecat package.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .patterns import IgnoreRules

# Optional third-party deps
try:
    from colorama import Fore, Style, just_fix_windows_console  # type: ignore
    just_fix_windows_console()
    COLORAMA_AVAILABLE = True
except ImportError:
    COLORAMA_AVAILABLE = False

# Exceptions
class TreecatError(Exception): ...
class TraversalError(TreecatError): ...
class InvalidRootError(TraversalError): ...
class ConfigFileError(TreecatError): ...
class OutputError(TreecatError): ...
class FileReadError(TreecatError): ...

# Defaults & helpers
IGNORE_FILE = ".gitignore"
DEFAULT_OUTPUT = "output.txt"
# excluded when no extension filter is given
DEFAULT_OUTPUT_EXT = ".txt"
OUTPUT_MODE = 0o644
GIT_DIR = ".git"


def _colored(msg: str, color: str) -> str:
    if COLORAMA_AVAILABLE:
        return getattr(Fore, color) + msg + Style.RESET_ALL
    return msg


def info(msg: str) -> None:
    print(f"[treecat] {msg}")


def warn(msg: str) -> None:
    print(_colored(f"[treecat] ! {msg}", "YELLOW"), file=sys.stderr)


def success(msg: str) -> None:
    print(_colored(msg, "GREEN"))


def error(msg: str) -> None:
    print(_colored(f"Error: {msg}", "RED"), file=sys.stderr)


def parse_extensions(raw: Optional[str]) -> FrozenSet[str]:
    """Turn ``"go, .py,tsx"`` into ``{".go", ".py", ".tsx"}``."""
    if not raw:
        return frozenset()
    exts = (item.strip().lstrip(".") for item in raw.split(","))
    return frozenset("." + ext for ext in exts if ext)


@dataclass(frozen=True)
class Config:
    target: Path
    output: Path
    extensions: FrozenSet[str] = frozenset()
    extra_patterns: Tuple[str, ...] = field(default_factory=tuple)
    gitignore_semantics: bool = False
    verbose: bool = False

    @classmethod
    def from_options(
        cls,
        ext: Optional[str] = None,
        target: Optional[Path] = None,
        output: Optional[Path] = None,
        cwd: Optional[Path] = None,
        **kwargs,
    ) -> "Config":
        """
        Build a Config, resolving relative paths against *cwd*.

        *cwd* defaults to the process working directory; looking it up can
        fail (``OSError``) when that directory has been removed.
        """
        if cwd is None:
            cwd = Path.cwd()
        target = cwd / target if target else cwd
        output = cwd / (output or DEFAULT_OUTPUT)
        return cls(
            target=Path(os.path.abspath(target)),
            output=Path(os.path.abspath(output)),
            extensions=parse_extensions(ext),
            **kwargs,
        )


# Ignore-file utilities
def load_ignore_patterns(root: Path) -> List[str]:
    """Read ``.gitignore`` at *root*; a missing file yields no patterns."""
    ignore_path = root / IGNORE_FILE
    try:
        with ignore_path.open("r", encoding="utf-8", errors="replace") as fh:
            return [
                line.rstrip("\r\n")
                for line in fh
                if line.strip() and not line.startswith("#")
            ]
    except OSError:
        return []


def load_extra_patterns(config_path: Path) -> List[str]:
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


# File-scanning helpers
def wants_extension(name: str, extensions: FrozenSet[str]) -> bool:
    ext = os.path.splitext(name)[1]
    if extensions:
        return ext in extensions
    return ext != DEFAULT_OUTPUT_EXT


def walk_tree(
    root: Path,
    extensions: FrozenSet[str],
    patterns: Sequence[str],
    *,
    gitignore_semantics: bool = False,
    skip: Optional[Path] = None,
) -> List[Path]:
    """
    Collect the files under *root* that survive every filter.

    Entries of a directory are visited in name order, depth first. Hidden
    entries are skipped (and ``.git`` never entered, even as *root*),
    excluded directories are pruned, and symlinks are treated as plain
    entries. *skip* is never selected, which keeps a previous output file
    out of the next snapshot.

    Any error while listing the tree aborts the walk with
    :class:`TraversalError`.
    """
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    if os.path.basename(os.path.abspath(root)) == GIT_DIR:
        return []

    rules = IgnoreRules(patterns, gitignore_semantics=gitignore_semantics)
    skip_path = os.path.abspath(skip) if skip is not None else None
    files: List[Path] = []

    def _listing(directory: str, rel_dir: str) -> List[Tuple[os.DirEntry, str]]:
        """Entries of *directory* in reverse name order, ready to be pushed."""
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name, reverse=True)
        except OSError as e:
            raise TraversalError(f"Could not list directory '{directory}': {e}") from e
        return [
            (entry, f"{rel_dir}/{entry.name}" if rel_dir else entry.name)
            for entry in entries
        ]

    stack = _listing(os.fspath(root), "")
    while stack:
        entry, rel = stack.pop()
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            raise TraversalError(f"Could not stat '{entry.path}': {e}") from e

        # hidden entries, .git included, are never descended into
        if entry.name.startswith("."):
            continue
        if rules.excludes(rel, is_dir=is_dir):
            continue
        if is_dir:
            stack.extend(_listing(entry.path, rel))
        elif wants_extension(entry.name, extensions) and entry.path != skip_path:
            files.append(Path(entry.path))

    return files


# Output
def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        raise FileReadError(f"'{path}' is not inside '{root}'")


def concatenate(
    paths: Iterable[Path],
    root: Path,
    skipped: Optional[List[str]] = None,
) -> bytes:
    """
    Return every file in *paths* as a ``path\\ncontents\\n\\n`` record.

    Unreadable files are reported and left out; their paths are appended to
    *skipped* when a list is given.
    """
    buf = bytearray()
    for p in paths:
        try:
            rel = _relative(p, root)
            data = p.read_bytes()
        except (OSError, FileReadError) as e:
            warn(f"Could not read {p}: {e}")
            if skipped is not None:
                skipped.append(str(p))
            continue
        buf += rel.encode("utf-8", "surrogateescape")
        buf += b"\n"
        buf += data
        buf += b"\n\n"
    return bytes(buf)


def write_output(data: bytes, out_path: Path) -> None:
    out_dir = out_path.parent
    if not out_dir.exists():
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_dir}': {e}")
    try:
        fd = os.open(out_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OUTPUT_MODE)
        with os.fdopen(fd, "wb") as out_fh:
            out_fh.write(data)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")


def run(config: Config) -> Path:
    """Load patterns, walk, concatenate and write; return the output path."""
    patterns = load_ignore_patterns(config.target) + list(config.extra_patterns)
    if config.verbose:
        info(f"{len(patterns)} exclusion patterns loaded")
        info(f"Scanning {config.target} …")

    files = walk_tree(
        config.target,
        config.extensions,
        patterns,
        gitignore_semantics=config.gitignore_semantics,
        skip=config.output,
    )
    if config.verbose:
        info(f"{len(files)} files selected")

    skipped: List[str] = []
    data = concatenate(files, config.target, skipped=skipped)
    write_output(data, config.output)

    if config.verbose:
        info(
            f"Done → {config.output}. {len(files) - len(skipped)} files written, "
            f"{len(data)} bytes, {len(skipped)} skipped."
        )
    return config.output
