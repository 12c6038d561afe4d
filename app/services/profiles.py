"""
Generation profiles.

A profile is the configuration record that parameterises the one document
pipeline: how many chapters, how long, for whom, in which voice, and with
which sampling parameters the completion API is called.  Values are fixed
here; callers only pick a profile by route.
"""
from __future__ import annotations

import dataclasses
from typing import Dict, Tuple

from app.models.database_models import DocumentType


@dataclasses.dataclass(frozen=True)
class SamplingParams:
    """Sampling parameters sent with every completion request of a profile."""

    temperature: float
    top_p: float
    presence_penalty: float
    frequency_penalty: float
    max_tokens: int

    def as_payload(self) -> Dict[str, float]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class GenerationProfile:
    key: str
    document_type: DocumentType
    template_set: str            # "book" | "research"
    chapter_count: int
    min_words: int
    subtopics: str               # e.g. "2-3" subtopics per chapter
    audience: str
    persona: str                 # system directive used when history is trimmed
    sampling: SamplingParams
    section_titles: Tuple[str, ...] = ()   # research profiles name their sections

    @property
    def prompt_count(self) -> int:
        """Table of contents + chapters + closing."""
        return self.chapter_count + 2


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------

_TUTOR_PERSONA = (
    "Your name is Hailu. You are a kind, smart teacher explaining to {audience}. "
    "Use simple, clear words, break down complex ideas step-by-step, and include "
    "human-like examples. Always start with a table of contents, then write "
    "chapters. Focus only on the requested topic, ignore unrelated contexts."
)

_RESEARCH_PERSONA = (
    "You are Hailu, an expert researcher. You write detailed, academic research "
    "papers and maintain coherence across sections. Use an academic tone, avoid "
    "speculation, and include plausible examples relevant to the topic. Focus "
    "only on the requested topic, ignore unrelated contexts."
)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

BOOK_SMALL = GenerationProfile(
    key="book_small",
    document_type=DocumentType.BOOK_SMALL,
    template_set="book",
    chapter_count=5,
    min_words=400,
    subtopics="2-3",
    audience="a curious 10-year-old",
    persona=_TUTOR_PERSONA.format(audience="a curious 10-year-old"),
    sampling=SamplingParams(
        temperature=0.8, top_p=0.9, presence_penalty=0.0,
        frequency_penalty=0.0, max_tokens=3000,
    ),
)

BOOK_MEDIUM = GenerationProfile(
    key="book_medium",
    document_type=DocumentType.BOOK_MEDIUM,
    template_set="book",
    chapter_count=10,
    min_words=400,
    subtopics="3-4",
    audience="a curious 16-year-old",
    persona=_TUTOR_PERSONA.format(audience="a curious 16-year-old"),
    sampling=SamplingParams(
        temperature=0.6, top_p=0.9, presence_penalty=0.3,
        frequency_penalty=0.3, max_tokens=4000,
    ),
)

BOOK_LONG = GenerationProfile(
    key="book_long",
    document_type=DocumentType.BOOK_LONG,
    template_set="book",
    chapter_count=10,
    min_words=600,
    subtopics="3-5",
    audience="a motivated adult learner",
    persona=_TUTOR_PERSONA.format(audience="a motivated adult learner"),
    sampling=SamplingParams(
        temperature=0.4, top_p=0.9, presence_penalty=0.3,
        frequency_penalty=0.3, max_tokens=4000,
    ),
)

RESEARCH_PAPER = GenerationProfile(
    key="research_paper",
    document_type=DocumentType.RESEARCH_PAPER,
    template_set="research",
    chapter_count=5,
    min_words=400,
    subtopics="2-3",
    audience="an academic audience",
    persona=_RESEARCH_PERSONA,
    sampling=SamplingParams(
        temperature=0.7, top_p=0.9, presence_penalty=0.2,
        frequency_penalty=0.2, max_tokens=3000,
    ),
    section_titles=(
        "Introduction",
        "Methodology",
        "Findings",
        "Discussion",
        "Conclusion",
    ),
)

RESEARCH_LONG = GenerationProfile(
    key="research_long",
    document_type=DocumentType.RESEARCH_LONG,
    template_set="research",
    chapter_count=10,
    min_words=800,
    subtopics="3-4",
    audience="an academic audience",
    persona=_RESEARCH_PERSONA,
    sampling=SamplingParams(
        temperature=0.6, top_p=0.9, presence_penalty=0.2,
        frequency_penalty=0.3, max_tokens=4000,
    ),
    section_titles=(
        "Introduction",
        "Literature Review",
        "Theoretical Framework",
        "Methodology",
        "Findings (Part 1)",
        "Findings (Part 2)",
        "Findings (Part 3)",
        "Discussion",
        "Limitations and Future Research",
        "Conclusion",
    ),
)

PROFILES: Dict[str, GenerationProfile] = {
    p.key: p for p in (BOOK_SMALL, BOOK_MEDIUM, BOOK_LONG, RESEARCH_PAPER, RESEARCH_LONG)
}


def get_profile(key: str) -> GenerationProfile:
    """Look up a profile by key; raises KeyError for unknown keys."""
    return PROFILES[key]
