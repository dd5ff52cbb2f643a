# Splits wikitext into sections at ==headings== and <hN> elements
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
from collections.abc import Iterable, Set
from dataclasses import asdict, dataclass
from typing import Any, NamedTuple

from .common import DEFAULT_TP_TAGS, clean, in_tp_tag
from .tag_parser import Tag

# Notes on heading markup:
#   == 1 ===             <h2>1 =</h2>
#   === 1 ==             <h2>= 1</h2>
#   == 1 == text         not a heading
#   == 1 ==<!--c-->      <h2>1</h2>
#   ======= 1 =======    <h6>= 1 =</h6>
# Only tabs, spaces, no-break spaces and comments may follow the closing
# equals signs.
HEADING_RE = re.compile(
    r"^(={1,6})(.+?)(={1,6})((?:[\t \u00a0]|<!--.*?-->)*)\n?$", re.M
)
HEADING_TAG_RE = re.compile(r"h([1-6])")
COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.S)


@dataclass(frozen=True)
class Section:
    """A section of the text.  The first section of every text is the
    implicit "top" section before the first heading.  A section extends to
    the next heading of the same or a higher level, so it includes its
    subsections."""

    title: str
    heading: str
    level: int
    index: int
    start_index: int
    end_index: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class _Heading(NamedTuple):
    text: str
    title: str
    level: int
    start: int
    end: int


def _remove_comments(text: str) -> str:
    return COMMENT_RE.sub("", text)


def parse_sections(
    source: str,
    tags: Iterable[Tag],
    tp_names: Set[str] = DEFAULT_TP_TAGS,
) -> list[Section]:
    """Returns the sections of ``source``, ordered by position.  ``tags``
    must come from the same source."""
    tags = list(tags)
    tp_tags = [t for t in tags if t.name in tp_names]

    headings: list[_Heading] = []
    for m in HEADING_RE.finditer(source):
        if in_tp_tag(tp_tags, m.start(), m.end()):
            continue
        left = len(m.group(1))
        right = len(m.group(3))
        level = min(left, right)
        # Surplus "=" characters belong to the title
        title = "=" * (left - level) + m.group(2) + "=" * (right - level)
        headings.append(
            _Heading(
                text=m.group(0).strip(),
                title=clean(_remove_comments(title)),
                level=level,
                start=m.start(),
                end=m.end(),
            )
        )

    for tag in tags:
        m = HEADING_TAG_RE.fullmatch(tag.name)
        if not m or tag.self_closed:
            continue
        if in_tp_tag(tp_tags, tag.start_index, tag.end_index):
            continue
        # <hN> written inside a ==heading== line is part of that heading
        if any(
            h.start <= tag.start_index and tag.end_index <= h.end
            for h in headings
        ):
            continue
        headings.append(
            _Heading(
                text=tag.text,
                title=clean(_remove_comments(tag.inner_text)),
                level=int(m.group(1)),
                start=tag.start_index,
                end=tag.end_index,
            )
        )

    headings.sort(key=lambda h: h.start)
    headings.insert(0, _Heading("", "top", 1, 0, 0))

    sections = []
    length = len(source)
    for i, heading in enumerate(headings):
        end = length
        if i == 0:
            if len(headings) > 1:
                end = headings[1].start
        else:
            for following in headings[i + 1 :]:
                if following.level <= heading.level:
                    end = following.start
                    break
        sections.append(
            Section(
                title=heading.title,
                heading=heading.text,
                level=heading.level,
                index=i,
                start_index=heading.start,
                end_index=end,
                content=source[heading.start : end],
            )
        )
    return sections
