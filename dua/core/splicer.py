# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# THE SPLICER - DOCKERFILE SECTION MERGING
# -----------------------------------------------------------------------------
# Responsibility: Add, remove and clear unit sections inside the IMAGE SETUP
# region of a target Dockerfile.
#
# merge_units / remove_units / clear_units are pure functions over
# DockerfileDocument. The file helpers at the bottom are the only code that
# touches disk:
# - add: one atomic replace (temp file + rename) per call
# - remove: one direct rewrite per unit, applied in order
# -----------------------------------------------------------------------------

import os
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

from rich.console import Console

from dua.domain.dockerfile import DockerfileDocument, MarkerError, Section, extract_section

console = Console()

SectionFetcher = Callable[[str], Section]


class UnitSourceError(Exception):
    """Raised when a unit's own Dockerfile or its marked section is missing."""

    def __init__(self, unit: str, message: str) -> None:
        super().__init__(message)
        self.unit = unit


# -----------------------------------------------------------------------------
# PURE OPERATIONS
# -----------------------------------------------------------------------------


def merge_units(
    document: DockerfileDocument, units: Sequence[str], fetch: SectionFetcher
) -> DockerfileDocument:
    """
    Add unit sections to a document.

    One unit: every other marked section is kept in order and the unit's
    section goes last. Several units: the region is rebuilt from the given
    list only, in that order; units already present but not listed are
    dropped.

    In both cases a section that already exists is reused as-is, so local
    edits survive. `fetch` is only called for units not yet present.
    """
    if not units:
        return document

    if len(units) == 1:
        unit = units[0]
        kept = [s for s in document.sections if s.is_marked and s.name != unit]
        return document.with_sections(kept + [document.get(unit) or fetch(unit)])

    return document.with_sections(document.get(unit) or fetch(unit) for unit in units)


def remove_units(document: DockerfileDocument, units: Sequence[str]) -> DockerfileDocument:
    """Drop the named sections. Names that are not present are ignored."""
    drop = set(units)
    return document.with_sections(s for s in document.sections if s.name not in drop)


def clear_units(document: DockerfileDocument) -> DockerfileDocument:
    """Empty the IMAGE SETUP region, keeping its markers."""
    return document.with_sections(())


# -----------------------------------------------------------------------------
# UNIT SOURCES
# -----------------------------------------------------------------------------


class UnitSource:
    """
    Reads unit sections from the units root.

    Layout: <units_root>/<unit>/docker/container-<target>/Dockerfile
    """

    def __init__(self, units_root: Path, target: str) -> None:
        self._units_root = units_root
        self._target = target

    def dockerfile(self, unit: str) -> Path:
        return self._units_root / unit / "docker" / f"container-{self._target}" / "Dockerfile"

    def fetch(self, unit: str) -> Section:
        """
        Read a unit's marked section from its own Dockerfile.

        Raises:
            UnitSourceError: If the file or the section does not exist.
        """
        path = self.dockerfile(unit)
        if not path.is_file():
            raise UnitSourceError(unit, f"Unit {unit} has no Dockerfile for {self._target}: {path}")

        try:
            section = extract_section(path.read_text(), unit)
        except MarkerError as e:
            raise UnitSourceError(unit, f"Unit {unit}: {e} in {path}")

        console.print(f"[cyan][SPLICER] Fetched section {unit} from {path}[/cyan]")
        return section


# -----------------------------------------------------------------------------
# FILE OPERATIONS
# -----------------------------------------------------------------------------


def read_document(path: Path) -> DockerfileDocument:
    return DockerfileDocument.parse(path.read_text())


def write_atomic(path: Path, text: str) -> None:
    """Replace a file's content in one step: temp file in the same dir, then rename."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w") as f:
            f.write(text)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o7777)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def add_units_to_file(path: Path, units: Sequence[str], source: UnitSource) -> DockerfileDocument:
    """Merge units into a target Dockerfile and atomically replace it."""
    document = read_document(path)
    for unit in units:
        if document.has(unit):
            console.print(f"[yellow][SPLICER] Unit {unit} already present, keeping it[/yellow]")
        else:
            console.print(f"[cyan][SPLICER] Adding unit {unit} ...[/cyan]")

    merged = merge_units(document, units, source.fetch)
    write_atomic(path, merged.render())
    return merged


def remove_units_from_file(path: Path, units: Sequence[str]) -> DockerfileDocument:
    """Remove units one at a time, rewriting the file after each."""
    document = read_document(path)
    for unit in units:
        if not document.has(unit):
            console.print(f"[yellow][SPLICER] Unit {unit} not present[/yellow]")
            continue
        console.print(f"[cyan][SPLICER] Removing unit {unit} ...[/cyan]")
        document = remove_units(document, [unit])
        path.write_text(document.render())
    return document


def clear_file(path: Path) -> DockerfileDocument:
    """Empty the IMAGE SETUP region of a target Dockerfile."""
    cleared = clear_units(read_document(path))
    write_atomic(path, cleared.render())
    return cleared
