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
# DOCKERFILE DOCUMENT MODEL
# -----------------------------------------------------------------------------
# A target Dockerfile is read as three parts:
#
#   preamble   file start .. "### IMAGE SETUP START ###" (inclusive)
#   sections   marked unit blocks "### <UNIT> START ###" .. "### <UNIT> END ###"
#   postamble  "### IMAGE SETUP END ###" (inclusive) .. end of file
#
# Lines keep their original endings, so render(parse(text)) == text for any
# well-formed file. Marker names are unique and blocks never nest.
# -----------------------------------------------------------------------------

import re
from dataclasses import dataclass, replace

IMAGE_SETUP = "IMAGE SETUP"

MARKER_RE = re.compile(r"^\s*#+\s+(?P<name>\S.*?)\s+(?P<edge>START|END)\s+#+\s*$")


class MarkerError(Exception):
    """Raised when START/END markers are missing, duplicated or nested."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message if line is None else f"{message} (line {line})")
        self.line = line


def parse_marker(line: str) -> tuple[str, str] | None:
    """Return (name, edge) if the line is a marker comment, else None."""
    match = MARKER_RE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    return match.group("name"), match.group("edge")


def _terminated(lines: list[str]) -> tuple[str, ...]:
    """Make sure the last line ends with a newline."""
    if lines and not lines[-1].endswith("\n"):
        lines = lines[:-1] + [lines[-1] + "\n"]
    return tuple(lines)


@dataclass(frozen=True)
class Section:
    """
    A block of lines inside the IMAGE SETUP region.

    Named sections start and end with their marker lines. Lines found between
    named sections are kept as anonymous sections (name is None) so that
    in-place edits like removal do not lose them.
    """

    name: str | None
    lines: tuple[str, ...]

    @property
    def is_marked(self) -> bool:
        return self.name is not None

    def text(self) -> str:
        return "".join(self.lines)


@dataclass(frozen=True)
class DockerfileDocument:
    """Parsed target Dockerfile: preamble, ordered sections, postamble."""

    preamble: tuple[str, ...]
    sections: tuple[Section, ...]
    postamble: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "DockerfileDocument":
        """
        Split a Dockerfile on its IMAGE SETUP markers and unit markers.

        Raises:
            MarkerError: If the IMAGE SETUP region is missing or a unit block
                is unclosed, nested or duplicated.
        """
        lines = text.splitlines(keepends=True)
        preamble: list[str] = []
        sections: list[Section] = []
        postamble: list[str] = []
        seen: set[str] = set()
        open_name: str | None = None
        block: list[str] = []
        state = "preamble"

        def flush_loose() -> None:
            if block:
                sections.append(Section(None, tuple(block)))
                block.clear()

        for number, line in enumerate(lines, start=1):
            marker = parse_marker(line)

            if state == "preamble":
                preamble.append(line)
                if marker == (IMAGE_SETUP, "START"):
                    state = "setup"
                continue

            if state == "postamble":
                postamble.append(line)
                continue

            # Inside the IMAGE SETUP region
            if marker is None:
                block.append(line)
                continue

            name, edge = marker
            if name == IMAGE_SETUP:
                if edge == "START":
                    raise MarkerError(f"Duplicate {IMAGE_SETUP} START marker", number)
                if open_name is not None:
                    raise MarkerError(f"Unclosed section: {open_name}", number)
                flush_loose()
                postamble.append(line)
                state = "postamble"
            elif edge == "START":
                if open_name is not None:
                    raise MarkerError(
                        f"Nested section {name} inside {open_name}", number
                    )
                if name in seen:
                    raise MarkerError(f"Duplicate section: {name}", number)
                flush_loose()
                seen.add(name)
                open_name = name
                block.append(line)
            else:
                if open_name != name:
                    raise MarkerError(f"Unexpected END marker for {name}", number)
                block.append(line)
                sections.append(Section(name, _terminated(block)))
                block.clear()
                open_name = None

        if state == "preamble":
            raise MarkerError(f"Missing {IMAGE_SETUP} START marker")
        if state == "setup":
            raise MarkerError(f"Missing {IMAGE_SETUP} END marker")

        return cls(
            preamble=_terminated(preamble),
            sections=tuple(sections),
            postamble=tuple(postamble),
        )

    def render(self) -> str:
        return (
            "".join(self.preamble)
            + "".join(section.text() for section in self.sections)
            + "".join(self.postamble)
        )

    @property
    def unit_names(self) -> list[str]:
        """Names of the marked sections, in build order."""
        return [s.name for s in self.sections if s.is_marked]

    def get(self, name: str) -> Section | None:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def with_sections(self, sections) -> "DockerfileDocument":
        return replace(self, sections=tuple(sections))


def extract_section(text: str, name: str) -> Section:
    """
    Pull the marked block for one unit out of any Dockerfile.

    Used on a unit's own Dockerfile, where the block may sit anywhere.

    Raises:
        MarkerError: If the block is missing, unclosed or duplicated.
    """
    found: Section | None = None
    block: list[str] = []
    inside = False

    for number, line in enumerate(text.splitlines(keepends=True), start=1):
        marker = parse_marker(line)
        if marker is not None and marker[0] == name:
            if marker[1] == "START":
                if inside or found is not None:
                    raise MarkerError(f"Duplicate section: {name}", number)
                inside = True
                block = [line]
                continue
            if not inside:
                raise MarkerError(f"Unexpected END marker for {name}", number)
            block.append(line)
            found = Section(name, _terminated(block))
            inside = False
            continue
        if inside:
            block.append(line)

    if inside:
        raise MarkerError(f"Unclosed section: {name}")
    if found is None:
        raise MarkerError(f"Section not found: {name}")
    return found
