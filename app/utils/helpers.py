"""
Common text helpers for topics, session keys and generated output.
"""
import re

_REQUEST_PREFIX = re.compile(
    r"^\s*(generate|create|write)( me)?( a book)?( about)?\s+", re.IGNORECASE
)
_RULE_LINE = re.compile(r"^[\s\-=_~]*$")
_RULE_CHARS = re.compile(r"[\-=_~]")


def extract_topic(prompt: str) -> str:
    """
    Derive the document topic from a free-text request.

    Strips a leading imperative such as "generate me a book about".  When
    nothing is left the stripped raw prompt is returned.

    Args:
        prompt: Text typed by the user

    Returns:
        Topic string
    """
    raw = prompt.strip()
    topic = _REQUEST_PREFIX.sub("", raw, count=1).strip()
    return topic or raw


def normalize_topic(topic: str, max_length: int = 50) -> str:
    """
    Normalize a topic for use in file and directory names.

    Args:
        topic: Topic string
        max_length: Maximum length of the result

    Returns:
        Lower-cased slug made of ``[a-z0-9_-]``
    """
    slug = re.sub(r"\s+", "_", topic.strip().lower())
    slug = re.sub(r"[^a-z0-9_\-]", "", slug)
    return slug[:max_length]


def session_key(user_id: str, topic: str) -> str:
    user = re.sub(r"[^A-Za-z0-9_\-]", "", user_id) or "anonymous"
    return f"{user}-{normalize_topic(topic)}"


def _is_rule_line(line: str) -> bool:
    return bool(_RULE_LINE.match(line)) and len(_RULE_CHARS.findall(line)) >= 5


def clean_generated_text(text: str) -> str:
    """
    Tidy generated text before rendering.

    Normalizes line endings, replaces en/em dashes with "-", blanks out
    horizontal-rule lines (5+ of ``-=_~``), strips trailing whitespace,
    collapses 3+ newlines to 2 and strips the result.  Applying it twice
    gives the same output as applying it once.

    Args:
        text: Combined document text

    Returns:
        Cleaned text
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("–", "-").replace("—", "-")
    lines = ["" if _is_rule_line(line) else line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def truncate_text(text: str, max_length: int = 200, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
