"""Tests for topic helpers and the pre-render cleanup pass."""
import pytest

from app.utils.helpers import (
    clean_generated_text,
    extract_topic,
    normalize_topic,
    session_key,
    truncate_text,
)


@pytest.mark.parametrize(
    "prompt, topic",
    [
        ("generate me a book about black holes", "black holes"),
        ("Write a book about Cats", "Cats"),
        ("create photosynthesis", "photosynthesis"),
        ("  The Roman Empire  ", "The Roman Empire"),
        ("generate", "generate"),
    ],
)
def test_extract_topic(prompt, topic):
    assert extract_topic(prompt) == topic


def test_normalize_topic():
    assert normalize_topic("  Black Holes & Stars!  ") == "black_holes__stars"
    assert len(normalize_topic("x" * 200)) == 50


def test_session_key_combines_user_and_topic():
    assert session_key("user-1", "Black Holes") == "user-1-black_holes"
    assert session_key("../evil", "cats") == "evil-cats"


def test_cleanup_rules():
    text = (
        "Title\r\n"
        "-----\r\n"
        "An em—dash and an en–dash.   \n"
        "\n\n\n\n"
        "=====  \n"
        "End\n\n"
    )
    assert clean_generated_text(text) == "Title\n\nAn em-dash and an en-dash.\n\nEnd"


def test_cleanup_keeps_short_markdown_rules_and_tables():
    text = "A\n\n---\n\n| a | b |\n|---|---|\n| 1 | 2 |"
    assert clean_generated_text(text) == text


@pytest.mark.parametrize(
    "text",
    [
        "Plain text",
        "Heading\n\n\n\nBody —— with dashes\n— — — — —\n",
        "  leading\t\n\r\n~~~~~~\n___ ___\ntrailing   ",
        "```\ncode   \n\n\n\nmore\n```",
        "",
    ],
)
def test_cleanup_is_idempotent(text):
    once = clean_generated_text(text)
    assert clean_generated_text(once) == once


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "aaaaaaa..."
