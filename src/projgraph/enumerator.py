# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""File enumeration with gitignore-style exclusion.

Walks a project root top-down and produces one FileRecord per regular file
that is not excluded by ignore rules.

Ignore semantics follow git:
- Patterns from an ignore file apply to the subtree of the directory holding it
- Nested ignore files compose; deeper files take precedence over shallower ones
- Within one file the last matching pattern wins ("!" re-includes)
- Files inside an excluded directory are never re-included (the directory is pruned)

The .git directory is always excluded by name, independent of ignore rules.
Hidden entries are otherwise visible. Symbolic links are never followed or
yielded, so traversal cannot loop.

Walk errors below the root (permission denied, I/O errors) are logged and the
affected subtree is skipped; they never abort the enumeration.
"""

import logging
import os
import posixpath
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pathspec.patterns.gitwildmatch import GitWildMatchPattern, GitWildMatchPatternError

from projgraph.config import Config
from projgraph.logging_setup import ProjectLogAdapter
from projgraph.models import FileRecord

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"
GIT_EXCLUDE_FILE = Path(GIT_DIR_NAME) / "info" / "exclude"
DEFAULT_IGNORE_FILES = (".gitignore", ".ignore")


def compile_patterns(lines: Iterable[str], source: str = "<patterns>") -> List[GitWildMatchPattern]:
    """Compile gitignore lines into patterns.

    Blank lines and comments produce no pattern. Invalid lines are skipped with
    a warning, as git skips them.

    Args:
        lines: Raw ignore-file lines.
        source: Where the lines came from, for log messages.

    Returns:
        List of active patterns in file order.
    """
    patterns: List[GitWildMatchPattern] = []
    for line in lines:
        line = line.rstrip("\r\n")
        try:
            pattern = GitWildMatchPattern(line)
        except GitWildMatchPatternError as e:
            logger.warning(f"Skipping invalid ignore pattern {line!r} in {source}: {e}")
            continue
        if pattern.include is not None:
            patterns.append(pattern)
    return patterns


@dataclass(frozen=True)
class IgnoreLayer:
    """Patterns from one source, anchored at a directory.

    base is the POSIX path of the anchoring directory relative to the root
    ("" for the root itself).
    """

    base: str
    patterns: Tuple[GitWildMatchPattern, ...]
    source: str

    def decide(self, rel_path: str, is_dir: bool) -> Optional[bool]:
        """Decide whether this layer ignores a path.

        Returns:
            True if ignored, False if explicitly re-included, None if no
            pattern in this layer matches.
        """
        if self.base:
            prefix = self.base + "/"
            if not rel_path.startswith(prefix):
                return None
            local = rel_path[len(prefix):]
        else:
            local = rel_path

        candidate = local + "/" if is_dir else local
        decision: Optional[bool] = None
        for pattern in self.patterns:
            if pattern.match_file(candidate) is not None:
                decision = bool(pattern.include)
        return decision


class IgnoreRules:
    """Ordered stack of ignore layers, lowest precedence first.

    Instances are immutable; with_patterns() returns an extended copy so each
    directory of a walk can hold the rules that apply to it.
    """

    def __init__(self, layers: Sequence[IgnoreLayer] = ()) -> None:
        self._layers: Tuple[IgnoreLayer, ...] = tuple(layers)

    @property
    def layers(self) -> Tuple[IgnoreLayer, ...]:
        return self._layers

    def with_patterns(self, base: str, lines: Iterable[str], source: str) -> "IgnoreRules":
        """Return rules extended with a higher-precedence layer.

        Args:
            base: Anchoring directory relative to the root ("" for root).
            lines: Raw gitignore lines.
            source: Where the lines came from, for log messages.
        """
        patterns = compile_patterns(lines, source)
        if not patterns:
            return self
        return IgnoreRules(self._layers + (IgnoreLayer(base, tuple(patterns), source),))

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check a root-relative POSIX path against all layers.

        The highest-precedence layer with a matching pattern decides.
        """
        for layer in reversed(self._layers):
            decision = layer.decide(rel_path, is_dir)
            if decision is not None:
                return decision
        return False

    def __len__(self) -> int:
        return len(self._layers)


def _read_ignore_lines(path: Path) -> List[str]:
    """Read an ignore file, treating an unreadable file as empty."""
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        logger.warning(f"Could not read ignore file {path}: {e}")
        return []


def validate_root(root: Path) -> None:
    """Fail fast on a root that cannot be walked.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.
        PermissionError: If root cannot be listed.
    """
    if not root.exists():
        raise FileNotFoundError(f"Project root not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise PermissionError(f"Project root is not readable: {root}")


class FileEnumerator:
    """Enumerates the files of one project root.

    Usage:
        enumerator = FileEnumerator(Path("/path/to/project"))
        records = enumerator.enumerate()
    """

    def __init__(
        self,
        root: Union[str, Path],
        ignore_patterns: Optional[Sequence[str]] = None,
        ignore_files: Sequence[str] = DEFAULT_IGNORE_FILES,
    ) -> None:
        """Initialize the enumerator.

        Args:
            root: Project root directory.
            ignore_patterns: Extra root-level patterns, lowest precedence.
            ignore_files: Per-directory ignore file names, lowest precedence first.
        """
        self.root = Path(root)
        self.ignore_patterns = list(ignore_patterns or [])
        self.ignore_files = tuple(ignore_files)
        self.walk_errors: List[OSError] = []
        self._log = ProjectLogAdapter(logger, self.root)

    @classmethod
    def from_config(cls, root: Union[str, Path], config: Config) -> "FileEnumerator":
        return cls(root, ignore_patterns=config.ignore_patterns, ignore_files=config.ignore_files)

    def enumerate(self) -> List[FileRecord]:
        """Walk the root and return one record per non-ignored regular file.

        Entries are visited in name order within each directory, so repeated
        passes over an unchanged tree return the same list.

        Raises:
            FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
        """
        validate_root(self.root)
        self.walk_errors = []

        records: List[FileRecord] = []
        rules_by_dir: Dict[str, IgnoreRules] = {}

        for dirpath, dirnames, filenames in os.walk(
            self.root, topdown=True, onerror=self._on_walk_error, followlinks=False
        ):
            current = Path(dirpath)
            rel_dir = self._relative(current)
            if rel_dir == ".":
                rel_dir = ""

            if rel_dir:
                parent_rules = rules_by_dir.get(posixpath.dirname(rel_dir))
                if parent_rules is None:
                    parent_rules = self._root_rules()
                rules = self._directory_rules(parent_rules, current, rel_dir)
            else:
                rules = self._directory_rules(self._root_rules(), current, rel_dir)
            rules_by_dir[rel_dir] = rules

            kept_dirs = []
            for name in sorted(dirnames):
                if name == GIT_DIR_NAME:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if rules.is_ignored(rel_path, is_dir=True):
                    self._log.debug(f"Pruning ignored directory: {rel_path}")
                    continue
                kept_dirs.append(name)
            # In-place assignment controls which subdirectories os.walk enters
            dirnames[:] = kept_dirs

            for name in sorted(filenames):
                record = self._file_record(current, rel_dir, name, rules)
                if record is not None:
                    records.append(record)

        self._log.debug(
            f"Enumerated {len(records)} files", extra={"extra_fields": {"files": len(records)}}
        )
        return records

    def _root_rules(self) -> IgnoreRules:
        """Rules that apply before any ignore file under the root is read."""
        rules = IgnoreRules()
        if self.ignore_patterns:
            rules = rules.with_patterns("", self.ignore_patterns, "configuration")
        exclude_file = self.root / GIT_EXCLUDE_FILE
        if exclude_file.is_file():
            rules = rules.with_patterns("", _read_ignore_lines(exclude_file), str(exclude_file))
        return rules

    def _directory_rules(self, parent: IgnoreRules, directory: Path, rel_dir: str) -> IgnoreRules:
        rules = parent
        for ignore_name in self.ignore_files:
            ignore_path = directory / ignore_name
            if ignore_path.is_file() and not ignore_path.is_symlink():
                rules = rules.with_patterns(
                    rel_dir, _read_ignore_lines(ignore_path), str(ignore_path)
                )
        return rules

    def _file_record(
        self, directory: Path, rel_dir: str, name: str, rules: IgnoreRules
    ) -> Optional[FileRecord]:
        full_path = directory / name
        try:
            mode = os.lstat(full_path).st_mode
        except OSError as e:
            self._log.warning(f"Could not stat {full_path}: {e}")
            return None

        # Symlinks, sockets, FIFOs and devices are skipped
        if not stat.S_ISREG(mode):
            return None

        rel_path = f"{rel_dir}/{name}" if rel_dir else name
        if GIT_DIR_NAME in rel_path.split("/"):
            return None
        if rules.is_ignored(rel_path, is_dir=False):
            return None

        return FileRecord.from_path(rel_path)

    def _relative(self, path: Path) -> str:
        """POSIX path relative to the root, or the absolute path as a fallback."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.absolute().as_posix()

    def _on_walk_error(self, error: OSError) -> None:
        self.walk_errors.append(error)
        self._log.warning(f"Error walking directory: {error.filename}: {error.strerror or error}")


def enumerate_files(
    root_path: Union[str, Path], config: Optional[Config] = None
) -> List[FileRecord]:
    """Enumerate the files of a project.

    Args:
        root_path: Project root directory.
        config: Configuration. If None, loads .projgraph.yml from the root.

    Returns:
        FileRecords with root-relative POSIX paths.

    Raises:
        FileNotFoundError, NotADirectoryError, PermissionError: Invalid root.
    """
    root = Path(root_path)
    if config is None:
        config = Config.for_root(root)
    return FileEnumerator.from_config(root, config).enumerate()
