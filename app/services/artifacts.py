"""
Section artifacts and the document assembler.

Each accepted reply is written to its own text file inside the job's working
directory.  ``combine()`` reads them back in sequence order and writes the
single combined text the renderer consumes.
"""
from __future__ import annotations

import dataclasses
import logging
import re
import shutil
from pathlib import Path
from typing import Iterable, List

import aiofiles

from app.services.errors import MissingArtifactError

logger = logging.getLogger(__name__)

COMBINED_FILENAME = "combined.txt"
SECTION_SEPARATOR = "\n\n"


@dataclasses.dataclass(frozen=True)
class ArtifactHandle:
    index: int
    name: str
    path: Path


class ArtifactStore:
    """Owns one job's working directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def section_path(self, index: int, name: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_\-]", "", name) or "section"
        return self.directory / f"section-{index:02d}-{safe}.txt"

    @property
    def combined_path(self) -> Path:
        return self.directory / COMBINED_FILENAME

    async def write_section(self, index: int, name: str, text: str) -> ArtifactHandle:
        self._ensure_directory()
        path = self.section_path(index, name)
        async with aiofiles.open(path, "w", encoding="utf-8") as fh:
            await fh.write(text)
        logger.debug("Wrote section artifact %s (%d chars)", path.name, len(text))
        return ArtifactHandle(index=index, name=name, path=path)

    async def combine(self, handles: Iterable[ArtifactHandle]) -> str:
        """
        Concatenate artifacts in index order, one blank line between each.

        Raises MissingArtifactError if any artifact file is gone.
        """
        parts: List[str] = []
        for handle in sorted(handles, key=lambda h: h.index):
            if not handle.path.exists():
                raise MissingArtifactError(f"Section artifact missing: {handle.path.name}")
            async with aiofiles.open(handle.path, "r", encoding="utf-8") as fh:
                parts.append(await fh.read())

        combined = SECTION_SEPARATOR.join(parts)

        self._ensure_directory()
        async with aiofiles.open(self.combined_path, "w", encoding="utf-8") as fh:
            await fh.write(combined)

        logger.info(
            "Combined %d section(s) into %s (%d chars)",
            len(parts),
            self.combined_path,
            len(combined),
        )
        return combined

    def discard(self) -> None:
        if self.directory.exists():
            shutil.rmtree(self.directory, ignore_errors=True)
