"""Ctags-backed symbol index and code model.

Uses Universal Ctags to list every declaration in a workspace with its line span.
The tag stream is read from stdout so nothing is written into the workspace.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Dict, List, Optional

from ..models.host import CodeElement
from .errors import HostUnavailableError
from .host import FUNCTION_KINDS, CodeModel, SymbolIndex
from .paths import split_lines

logger = logging.getLogger(__name__)

SCOPE_FIELDS = ("class", "struct", "union", "namespace", "interface", "enum", "module", "function", "method")
COLON_SCOPED_LANGUAGES = frozenset({"C", "C++", "CUDA", "Rust", "PHP"})


@dataclass
class SymbolTag:
    """One declaration from the ctags stream."""
    name: str
    file_path: str
    lineno: int
    kind: str
    scope: Optional[str] = None
    end_lineno: Optional[int] = None
    signature: Optional[str] = None
    language: str = "unknown"

    @property
    def full_name(self) -> str:
        if not self.scope:
            return self.name
        separator = "::" if self.language in COLON_SCOPED_LANGUAGES else "."
        return f"{self.scope}{separator}{self.name}"

    @property
    def last_line(self) -> int:
        return max(self.lineno, self.end_lineno or self.lineno)


def parse_tag_line(line: str) -> Optional[SymbolTag]:
    """Parse one line of ctags output.

    Format (tab-separated, ``--excmd=number``)::

        <name>\\t<file>\\t<line>;"\\t<kind>\\tline:<n>\\tend:<n>\\tclass:<scope>...

    Returns None for pseudo-tags and lines that do not fit.
    """
    if line.startswith("!_TAG_"):
        return None
    parts = line.rstrip("\r\n").split("\t")
    if len(parts) < 3 or not parts[0] or not parts[1]:
        return None

    fields: Dict[str, str] = {}
    for part in parts[3:]:
        if ":" in part:
            key, value = part.split(":", 1)
            fields[key] = value
        elif part:
            fields["kind"] = part

    lineno = _to_int(fields.get("line")) or _to_int(parts[2].split(";", 1)[0])
    if not lineno or lineno < 1:
        return None

    scope = None
    for key in SCOPE_FIELDS:
        if key in fields:
            scope = fields[key]
            break

    return SymbolTag(
        name=parts[0],
        file_path=parts[1],
        lineno=lineno,
        kind=expand_kind(fields.get("kind", "unknown")),
        scope=scope,
        end_lineno=_to_int(fields.get("end")),
        signature=fields.get("signature"),
        language=fields.get("language", "unknown"),
    )


def expand_kind(kind: str) -> str:
    """Expand ctags kind abbreviations to full names."""
    kind_map = {
        "c": "class",
        "f": "function",
        "m": "member",
        "v": "variable",
        "i": "interface",
        "s": "struct",
        "t": "typedef",
        "n": "namespace",
        "e": "enumerator",
        "g": "enum",
        "p": "prototype",
        "u": "union",
    }
    return kind_map.get(kind, kind)


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class CtagsIndex(SymbolIndex, CodeModel):
    """Symbol index and code model over one workspace's ctags output."""

    def __init__(
        self,
        root: Path,
        ctags_binary: str = "ctags",
        timeout_seconds: float = 120.0,
        languages: Optional[List[str]] = None,
    ) -> None:
        self.root = root
        self.ctags_binary = ctags_binary
        self.timeout_seconds = timeout_seconds
        self.languages = languages
        self._tags: Optional[List[SymbolTag]] = None
        self._by_file: Dict[str, List[SymbolTag]] = {}

    def load(self, tags: List[SymbolTag]) -> None:
        """Replace the index contents."""
        self._tags = tags
        by_file: Dict[str, List[SymbolTag]] = defaultdict(list)
        for tag in tags:
            by_file[self._key(tag.file_path)].append(tag)
        self._by_file = dict(by_file)
        logger.info(f"Indexed {len(tags)} symbols under {self.root}")

    def refresh(self) -> None:
        self.load(self._run_ctags())

    @property
    def tags(self) -> List[SymbolTag]:
        if self._tags is None:
            self.refresh()
        return self._tags or []

    def _run_ctags(self) -> List[SymbolTag]:
        ctags_bin = shutil.which(self.ctags_binary)
        if not ctags_bin:
            raise HostUnavailableError(
                "ctags binary not found; install Universal Ctags",
                {"ctags_binary": self.ctags_binary},
            )

        cmd = [
            ctags_bin,
            "--recurse",
            "--excmd=number",
            "--fields=+nKSel",
            "-f", "-",
        ]
        if self.languages:
            cmd.append(f"--languages={','.join(self.languages)}")
        cmd.append(".")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.root,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise HostUnavailableError(
                f"ctags timed out after {self.timeout_seconds:.0f} seconds"
            ) from exc
        except OSError as exc:
            raise HostUnavailableError(f"Failed to run ctags: {exc}") from exc

        if result.returncode != 0:
            raise HostUnavailableError(
                f"ctags failed with exit code {result.returncode}",
                {"stderr": result.stderr.strip()[:500]},
            )

        tags = []
        for line in split_lines(result.stdout):
            tag = parse_tag_line(line)
            if tag is not None:
                tags.append(tag)
        return tags

    def _key(self, path: str) -> str:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return os.path.normpath(str(candidate))

    def lookup(self, name: str, whole_word: bool = True) -> List[SymbolTag]:
        if not name:
            return []
        if whole_word:
            return [tag for tag in self.tags if tag.name == name]
        return [tag for tag in self.tags if name in tag.name]

    def tags_in(self, path: str) -> List[SymbolTag]:
        if self._tags is None:
            self.refresh()
        return list(self._by_file.get(self._key(path), []))

    def element_at(
        self, path: str, line: int, column: int, kinds: Collection[str] = FUNCTION_KINDS
    ) -> Optional[CodeElement]:
        best: Optional[SymbolTag] = None
        for tag in self.tags_in(path):
            if tag.kind not in kinds or not tag.lineno <= line <= tag.last_line:
                continue
            if best is None or tag.last_line - tag.lineno < best.last_line - best.lineno:
                best = tag
        if best is None:
            return None
        return _element(best)

    def elements_in(self, path: str) -> List[CodeElement]:
        tags = sorted(self.tags_in(path), key=lambda tag: (tag.lineno, -tag.last_line))
        elements = {id(tag): _element(tag) for tag in tags}
        by_name: Dict[str, SymbolTag] = {}
        for tag in tags:
            by_name.setdefault(tag.full_name, tag)

        roots: List[CodeElement] = []
        for tag in tags:
            parent = by_name.get(tag.scope) if tag.scope else None
            if parent is None or parent is tag:
                roots.append(elements[id(tag)])
            else:
                elements[id(parent)].children.append(elements[id(tag)])
        return roots


def _element(tag: SymbolTag) -> CodeElement:
    return CodeElement(
        kind=tag.kind,
        full_name=tag.full_name,
        start_line=tag.lineno,
        end_line=tag.last_line,
    )


__all__ = [
    "SymbolTag",
    "CtagsIndex",
    "parse_tag_line",
    "expand_kind",
    "FUNCTION_KINDS",
]
