"""Tests for the per-job conversation store."""
import json

import pytest

from app.services.conversation import (
    ASSISTANT,
    SYSTEM,
    USER,
    ConversationStore,
)

PERSONA = "You are Hailu."


def test_trim_is_empty_without_table_of_contents():
    store = ConversationStore(PERSONA)
    store.append(USER, "hello")
    store.append(ASSISTANT, "hi there")
    assert store.trim() == []


def test_trim_collapses_to_single_system_entry():
    store = ConversationStore(PERSONA)
    store.append(USER, "make a toc")
    store.append(ASSISTANT, "TABLE OF CONTENTS\n1. Intro")
    store.append(USER, "write chapter 1")
    store.append(ASSISTANT, "Chapter 1 text")

    trimmed = store.trim()
    assert trimmed == [
        {
            "role": SYSTEM,
            "content": f"{PERSONA}\n\nTable of Contents:\n\nTABLE OF CONTENTS\n1. Intro",
        }
    ]
    # Read-side view only: the log itself keeps every entry.
    assert len(store) == 4


def test_most_recent_table_of_contents_wins():
    store = ConversationStore(PERSONA)
    store.append(ASSISTANT, "Table of Contents: old")
    store.append(ASSISTANT, "Table of contents: new")
    assert store.table_of_contents().content == "Table of contents: new"


def test_user_entries_are_not_treated_as_toc():
    store = ConversationStore(PERSONA)
    store.append(USER, "Please write a table of contents")
    assert store.table_of_contents() is None


def test_unknown_role_rejected():
    store = ConversationStore(PERSONA)
    with pytest.raises(ValueError):
        store.append("tool", "x")


@pytest.mark.asyncio
async def test_save_persists_full_log_and_discard_removes_it(tmp_path):
    path = tmp_path / "history.json"
    store = ConversationStore(PERSONA, path=path)
    store.append(USER, "q")
    store.append(ASSISTANT, "Table of Contents\n1. A")
    await store.save()

    assert json.loads(path.read_text()) == [
        {"role": "user", "content": "q"},
        {"role": "assistant", "content": "Table of Contents\n1. A"},
    ]

    store.discard()
    assert not path.exists()
    assert len(store) == 0
