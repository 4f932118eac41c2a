"""
Core logic for codemd: walk → filter → render → split.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

import pathspec
from colorama import Fore, Style, init as colorama_init

from .config import ScanConfig
from .errors import ConfigFileError, FileReadError, IgnoreFileError, InvalidRootError, OutputError
from .ignore import IgnoreFlavor, IgnoreSet

colorama_init()

# Defaults & helpers
DEFAULT_PATTERNS: List[str] = [
    ".git/",
    "node_modules/",
    "__pycache__/",
]
DEFAULT_SPEC = pathspec.GitIgnoreSpec.from_lines(DEFAULT_PATTERNS)


def _fence_tag(path: Path) -> str:
    return path.suffix[1:]


def _echo(msg: str, color: str = "") -> None:
    if color:
        print(color + msg + Style.RESET_ALL)
    else:
        print(msg)


def is_hidden(name: str) -> bool:
    name = name.strip()
    return name.startswith(".") or name.startswith("_")


# Ignore-file utilities
def load_ignore_sets(config: ScanConfig) -> List[IgnoreSet]:
    """Load every ignore file the scan should honour.

    A root ``.gitignore`` / ``.codeignore`` that does not exist simply adds no
    rules; a missing ``extra_patterns`` file is an error.
    """
    root = config.root.resolve()
    ignore_sets: List[IgnoreSet] = []

    wanted = []
    if config.use_gitignore:
        wanted.append(IgnoreFlavor.GITIGNORE)
    if config.use_codeignore:
        wanted.append(IgnoreFlavor.CODEIGNORE)

    for flavor in wanted:
        ignore_path = root / flavor.filename
        if not ignore_path.is_file():
            continue
        try:
            ignore_sets.append(IgnoreSet.load_from_file(ignore_path, flavor=flavor, config=config.ignore))
        except IgnoreFileError as e:
            if config.verbose:
                _echo(f"[codemd] ! {e}", Fore.YELLOW)
            continue
        if config.verbose:
            _echo(f"[codemd] Loaded {len(ignore_sets[-1])} patterns from {flavor.filename}")

    if config.extra_patterns is not None:
        extra = config.extra_patterns
        if not extra.exists():
            raise ConfigFileError(f"Config file '{extra}' does not exist")
        if not extra.is_file():
            raise ConfigFileError(f"'{extra}' is not a file")
        try:
            ignore_sets.append(
                IgnoreSet.load_from_file(
                    extra, flavor=IgnoreFlavor.CODEIGNORE, root=root, config=config.ignore
                )
            )
        except IgnoreFileError as e:
            raise ConfigFileError(f"Could not read config file '{extra}': {e}") from e
        if config.verbose:
            _echo(f"[codemd] Loaded extra patterns from {extra}")

    return ignore_sets


# File-scanning helpers
def _is_excluded(
    path: Path,
    root: Path,
    is_dir: bool,
    config: ScanConfig,
    ignore_sets: Iterable[IgnoreSet],
) -> bool:
    if not config.include_hidden and is_hidden(path.name):
        return True
    if is_dir and path.name in config.exclude_dirs:
        return True

    rel = path.relative_to(root).as_posix()
    if DEFAULT_SPEC.match_file(rel + "/" if is_dir else rel):
        return True
    return any(s.should_ignore(path, is_dir=is_dir) for s in ignore_sets)


def scan_files(config: ScanConfig, ignore_sets: Optional[List[IgnoreSet]] = None) -> List[Path]:
    """Walk ``config.root`` top-down and return the files that survive filtering.

    Ignored directories are pruned as a whole, so nothing beneath them is
    ever tested on its own.
    """
    try:
        root = config.root.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{config.root}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")

    if ignore_sets is None:
        ignore_sets = load_ignore_sets(config)

    try:
        out_path = config.output.resolve()
    except (OSError, RuntimeError):
        out_path = None

    def _onerror(err: OSError) -> None:
        raise InvalidRootError(f"Could not scan directory '{err.filename}': {err}")

    files: List[Path] = []
    try:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_onerror):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames
                if not _is_excluded(current / d, root, True, config, ignore_sets)
            )
            for name in sorted(filenames):
                path = current / name
                if out_path is not None and path == out_path:
                    continue
                if _is_excluded(path, root, False, config, ignore_sets):
                    continue
                files.append(path)
    except PermissionError as e:
        raise InvalidRootError(f"Could not scan directory '{root}': {e}")

    return sorted(files)


def filter_by_types(paths: List[Path], file_types: List[str]) -> List[Path]:
    """Keep files whose extension (without the dot) is listed in *file_types*."""
    wanted = {t.lstrip(".") for t in file_types if t}
    if not wanted:
        return list(paths)
    return [p for p in paths if p.suffix and p.suffix[1:] in wanted]


# project-tree renderer
def build_project_tree(paths: Iterable[Path], root: Path) -> str:
    """
    Return the ``## Project Structure`` section for *paths*.

    Directories are listed before files, both alphabetically, with
    ``├──``, ``└──`` and ``│   `` connectors.
    """
    tree: dict[str, dict | None] = {}

    for p in paths:
        parts = p.relative_to(root).parts
        cur = tree
        for part in parts[:-1]:
            cur = cur.setdefault(part, {})  # type: ignore[assignment]
        cur[parts[-1]] = None

    lines: List[str] = ["## Project Structure", "", "```", f"{root.name}/"]

    def _walk(node: dict, prefix: str = "") -> None:
        items = sorted(node.items(), key=lambda kv: (kv[1] is None, kv[0]))  # dirs first
        for idx, (name, child) in enumerate(items):
            last = idx == len(items) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{name}{'/' if child is not None else ''}")
            if child is not None:
                _walk(child, prefix + ("    " if last else "│   "))

    _walk(tree)
    lines.append("```")
    return "\n".join(lines) + "\n\n"


# Misc helpers
def _is_binary(data: bytes) -> bool:
    return b"\0" in data


def render_markdown(paths: List[Path], root: Path, verbose: bool = False) -> str:
    """Render the project name, structure tree and every file as markdown."""
    sections = [f"# {root.name}\n", build_project_tree(paths, root)]

    for p in paths:
        rel = p.relative_to(root).as_posix()
        try:
            raw = p.read_bytes()
        except OSError as e:
            raise FileReadError(f"Could not read '{rel}': {e}") from e

        if _is_binary(raw):
            if verbose:
                _echo(f"[codemd] - Skipping binary {rel}", Fore.YELLOW)
            continue

        text = raw.decode("utf-8", errors="replace")
        sections.append(f"## {rel}\n```{_fence_tag(p)}\n{text}\n```\n")

    return "".join(sections)


# Output splitting
def split_content(content: str, max_bytes: int) -> List[str]:
    """Cut *content* into chunks of at most *max_bytes* UTF-8 bytes.

    Chunk boundaries never fall inside a multi-byte character.
    """
    if max_bytes <= 0:
        raise ValueError("max_bytes must be greater than 0")

    data = content.encode("utf-8")
    parts: List[str] = []
    start = 0
    while start < len(data):
        end = min(start + max_bytes, len(data))
        # back off continuation bytes (0b10xxxxxx)
        while end < len(data) and end > start and (data[end] & 0xC0) == 0x80:
            end -= 1
        if end == start:
            raise ValueError(f"max_bytes={max_bytes} cannot hold the character at byte {start}")
        parts.append(data[start:end].decode("utf-8", errors="replace"))
        start = end
    return parts


def part_path(out_path: Path, index: int) -> Path:
    """``CODE.md`` → ``CODE1.md`` for *index* 1."""
    return out_path.with_name(f"{out_path.stem}{index}{out_path.suffix}")


def write_output(content: str, out_path: Path, max_bytes: int) -> List[Path]:
    """Write *content*, splitting it into numbered parts when it is too large."""
    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    if len(content.encode("utf-8")) <= max_bytes:
        targets = [(out_path, content)]
    else:
        targets = [
            (part_path(out_path, i), part)
            for i, part in enumerate(split_content(content, max_bytes), start=1)
        ]

    written: List[Path] = []
    for target, text in targets:
        try:
            with target.open("w", encoding="utf-8", newline="\n") as out_fh:
                out_fh.write(text)
        except OSError as e:
            raise OutputError(f"Could not write to output file '{target}': {e}")
        written.append(target)
    return written


# Main pipeline
def generate(config: ScanConfig) -> List[Path]:
    """Run scan → type filter → render → write and return the files written."""
    root = config.root.resolve()

    if config.verbose:
        _echo(f"[codemd] Scanning {root} …")

    all_files = scan_files(config)
    kept_files = filter_by_types(all_files, config.file_types)

    if config.verbose:
        _echo(f"[codemd] {len(all_files)} files found, {len(kept_files)} kept after type filtering.")

    content = render_markdown(kept_files, root, verbose=config.verbose)
    written = write_output(content, config.output, config.max_bytes)

    if config.verbose:
        targets = ", ".join(str(p) for p in written)
        _echo(
            f"[codemd] Done → {targets}. {len(kept_files)} files processed, "
            f"{len(content.encode('utf-8'))} bytes written.",
            Fore.GREEN,
        )
    return written
