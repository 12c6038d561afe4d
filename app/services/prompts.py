"""
Prompt templates for document generation.

``build_prompts(topic, profile)`` returns the ordered prompt sequence for one
job: a table-of-contents prompt, one prompt per chapter (or per research
section) and a closing prompt for the conclusion and references.  All
templates are module-level constants so they can be tuned without touching
logic code.
"""
from __future__ import annotations

import dataclasses
from typing import List

from app.services.profiles import GenerationProfile

TOC = "toc"
CHAPTER = "chapter"
CLOSING = "closing"


@dataclasses.dataclass(frozen=True)
class SectionPrompt:
    index: int           # 1-based position in the sequence
    kind: str            # toc | chapter | closing
    name: str            # used to name the section artifact
    text: str
    references_toc: bool = True


# ---------------------------------------------------------------------------
# Shared fragments
# ---------------------------------------------------------------------------

_STAY_ON_TOPIC = (
    'Focus strictly on "{topic}". Ignore any unrelated topics or previous '
    "requests that are not about {topic}."
)

_FORMATTING = (
    "Format the answer in Markdown: use ## for the main heading, ### for each "
    "subtopic, bullet lists where they help, and fenced code blocks for any code. "
    "Do not use HTML tags."
)


# ---------------------------------------------------------------------------
# Book templates
# ---------------------------------------------------------------------------

_BOOK_TOC_PROMPT = """\
As Hailu, first write a title for the book, then create a table of contents \
for a book about "{topic}" for someone with no prior knowledge. Start your \
answer with the heading "Table of Contents". The book must have exactly \
{chapters} chapters, each covering a unique aspect of {topic}. Each chapter \
will be at least {min_words} words and written in a fun, simple, friendly \
tone, like explaining to {audience}. Use clear, descriptive chapter titles in \
the form "Chapter N: Title" and list {subtopics} subtopics under each chapter. \
Output only the table of contents as a numbered list of chapter titles and \
subtopics. Ensure topics are distinct and avoid overlap. {stay_on_topic} \
After you finish the table of contents, stop. Do not write any chapter.\
"""

_BOOK_CHAPTER_PROMPT = """\
As Hailu, write Chapter {number} of the book about "{topic}", based on the \
table of contents you created. Focus only on the {ordinal} chapter's topic and \
subtopics. Use a fun, simple, friendly tone, like explaining to {audience}. \
Break down complex ideas into clear steps with vivid examples, and use an \
analogy per subtopic where it helps. Include a description of a diagram or \
table that would aid understanding. Use a clear heading for each subtopic. \
Write at least {min_words} words, avoid copyrighted material, and ensure \
accuracy. If information is limited, explain in simple terms and note the \
limitations. {formatting} {stay_on_topic} Do not include the table of \
contents or other chapters. When you are done writing Chapter {number}, stop.\
"""

_BOOK_CLOSING_PROMPT = """\
As Hailu, write the conclusion and references for the book about "{topic}", \
based on the table of contents and the {chapters} chapters you created. Use a \
fun, simple, friendly tone, like explaining to {audience}. In the conclusion \
(200-300 words), summarize the key ideas from all {chapters} chapters and \
inspire the reader to learn more about {topic}. In the references section, \
provide 3-5 reliable, beginner-friendly resources with a 1-2 sentence \
description each. Use the headings "Conclusion" and "References". \
{stay_on_topic} Do not include the table of contents or chapter content. \
When you are done, stop.\
"""


# ---------------------------------------------------------------------------
# Research templates
# ---------------------------------------------------------------------------

_RESEARCH_TOC_PROMPT = """\
Give a research paper on "{topic}" a proper title, then write a 200-word \
abstract summarizing its purpose, methods, key findings, and conclusion. \
Then write the paper's outline under the heading "Table of Contents", listing \
exactly these {chapters} sections in order: {section_list}. Under each \
section list {subtopics} subsection headings. Write for {audience}. \
{stay_on_topic} After the table of contents, stop. Do not write any section.\
"""

_RESEARCH_SECTION_PROMPT = """\
Write section {number}, "{section}", of the research paper on "{topic}", \
following the table of contents you created. Write at least {min_words} \
words for {audience} in an academic tone, with subsections for the subsection \
headings listed in the outline. Support statements with plausible examples \
and cite sources in APA style where appropriate. {formatting} \
{stay_on_topic} Do not repeat the abstract, the table of contents, or other \
sections. When you are done writing the {section} section, stop.\
"""

_RESEARCH_CLOSING_PROMPT = """\
Write the references for the research paper on "{topic}". Generate 5-10 \
references in APA format as Markdown bullet points, relevant to the \
{chapters} sections you wrote. Use the heading "References". \
{stay_on_topic} Do not repeat any section content. When you are done, stop.\
"""


_ORDINALS = (
    "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
)


def _ordinal(n: int) -> str:
    return _ORDINALS[n - 1] if 0 < n <= len(_ORDINALS) else f"number {n}"


def build_prompts(topic: str, profile: GenerationProfile) -> List[SectionPrompt]:
    """Return the ordered prompt sequence (length ``chapter_count + 2``)."""
    common = {
        "topic": topic,
        "chapters": profile.chapter_count,
        "min_words": profile.min_words,
        "audience": profile.audience,
        "subtopics": profile.subtopics,
        "stay_on_topic": _STAY_ON_TOPIC.format(topic=topic),
        "formatting": _FORMATTING,
    }

    if profile.template_set == "research":
        return _research_prompts(profile, common)
    return _book_prompts(profile, common)


def _book_prompts(profile: GenerationProfile, common: dict) -> List[SectionPrompt]:
    prompts = [
        SectionPrompt(
            index=1, kind=TOC, name="toc",
            text=_BOOK_TOC_PROMPT.format(**common),
            references_toc=False,
        )
    ]
    for number in range(1, profile.chapter_count + 1):
        prompts.append(
            SectionPrompt(
                index=number + 1,
                kind=CHAPTER,
                name=f"chapter-{number}",
                text=_BOOK_CHAPTER_PROMPT.format(
                    number=number, ordinal=_ordinal(number), **common
                ),
            )
        )
    prompts.append(
        SectionPrompt(
            index=profile.chapter_count + 2,
            kind=CLOSING,
            name="conclusion",
            text=_BOOK_CLOSING_PROMPT.format(**common),
        )
    )
    return prompts


def _research_prompts(profile: GenerationProfile, common: dict) -> List[SectionPrompt]:
    titles = list(profile.section_titles)
    prompts = [
        SectionPrompt(
            index=1, kind=TOC, name="outline",
            text=_RESEARCH_TOC_PROMPT.format(section_list=", ".join(titles), **common),
            references_toc=False,
        )
    ]
    for number, section in enumerate(titles, start=1):
        prompts.append(
            SectionPrompt(
                index=number + 1,
                kind=CHAPTER,
                name=f"section-{number}",
                text=_RESEARCH_SECTION_PROMPT.format(
                    number=number, section=section, **common
                ),
            )
        )
    prompts.append(
        SectionPrompt(
            index=profile.chapter_count + 2,
            kind=CLOSING,
            name="references",
            text=_RESEARCH_CLOSING_PROMPT.format(**common),
        )
    )
    return prompts
