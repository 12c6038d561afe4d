"""
Per-job conversation state.

The store keeps the full ordered log of one job's exchanges.  ``trim()`` is a
pure read-side view: it collapses the log to a single system entry built from
the persona and the most recent table-of-contents reply, and that view is what
is sent upstream.  ``save()`` always persists the full log.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles

logger = logging.getLogger(__name__)

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"

TOC_MARKER = "table of contents"


@dataclasses.dataclass(frozen=True)
class ConversationEntry:
    role: str
    content: str

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationStore:
    """Ordered, append-only conversation log owned by one generation job."""

    def __init__(self, persona: str, path: Optional[Path] = None) -> None:
        self.persona = persona
        self.path = path
        self._entries: List[ConversationEntry] = []

    @property
    def entries(self) -> List[ConversationEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, role: str, content: str) -> ConversationEntry:
        if role not in (SYSTEM, USER, ASSISTANT):
            raise ValueError(f"Unknown conversation role: {role!r}")
        entry = ConversationEntry(role=role, content=content)
        self._entries.append(entry)
        return entry

    def table_of_contents(self) -> Optional[ConversationEntry]:
        """Most recent assistant entry that mentions a table of contents."""
        for entry in reversed(self._entries):
            if entry.role == ASSISTANT and TOC_MARKER in entry.content.lower():
                return entry
        return None

    def trim(self) -> List[Dict[str, str]]:
        """Effective history sent upstream: at most one system message."""
        toc = self.table_of_contents()
        if toc is None:
            return []
        return [
            {
                "role": SYSTEM,
                "content": f"{self.persona}\n\nTable of Contents:\n\n{toc.content}",
            }
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self) -> None:
        if self.path is None:
            return
        payload = json.dumps([e.as_message() for e in self._entries], indent=2)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as fh:
            await fh.write(payload)

    def discard(self) -> None:
        self._entries.clear()
        if self.path is not None and self.path.exists():
            os.remove(self.path)
