# Scanner for HTML-like tags and comments in wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
from dataclasses import asdict, dataclass
from typing import Any, NamedTuple

# No whitespace is allowed between "<" and the tag name, nor inside "/>".
#   <foo   >  </foo  >  <foo  />
OPENING_TAG_RE = re.compile(r"<(?!/)([^>\s]+?)(?:\s[^>]*)?/?>")
CLOSING_TAG_RE = re.compile(r"</([^>\s]+)(?:\s[^>]*)?>")

COMMENT_START = "<!--"
COMMENT_END = "-->"


@dataclass(frozen=True)
class Tag:
    """One element or comment found by parse_tags().  Comments are named
    "comment".  ``start_index`` and ``end_index`` delimit ``text`` in the
    parsed source as a half-open range."""

    name: str
    text: str
    inner_text: str
    self_closed: bool
    unclosed: bool
    start_index: int
    end_index: int
    nest_level: int

    @property
    def start_tag(self) -> str:
        if self.name == "comment":
            return COMMENT_START
        if self.self_closed:
            return self.text
        m = OPENING_TAG_RE.match(self.text)
        assert m is not None
        return m.group(0)

    @property
    def end_tag(self) -> str:
        """The end tag found in the source.  For an unclosed tag this is the
        end tag that would close it."""
        if self.unclosed:
            return COMMENT_END if self.name == "comment" else f"</{self.name}>"
        if self.self_closed and self.name != "comment":
            return ""
        return self.text[len(self.start_tag) + len(self.inner_text) :]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class _OpenTag(NamedTuple):
    name: str
    start: int
    inner_start: int


def _close(
    source: str,
    entry: _OpenTag,
    end: int,
    inner_end: int,
    unclosed: bool,
    nest_level: int,
) -> Tag:
    return Tag(
        name=entry.name,
        text=source[entry.start : end],
        inner_text=source[entry.inner_start : inner_end],
        self_closed=False,
        unclosed=unclosed,
        start_index=entry.start,
        end_index=end,
        nest_level=nest_level,
    )


def parse_tags(source: str) -> list[Tag]:
    """Parses tags and comments in ``source``.  Malformed markup never
    raises; tags without a matching end tag are returned with
    ``unclosed=True``.  The result is sorted by start index, enclosing tags
    before the tags they contain."""
    tags: list[Tag] = []
    # Open tags, innermost last.  The position of an entry in this list is
    # its nesting level.
    stack: list[_OpenTag] = []
    length = len(source)
    pos = 0
    while pos < length:
        if stack and stack[-1].name == "comment":
            # Inside a comment only the comment end matters
            end = source.find(COMMENT_END, pos)
            if end < 0:
                break
            entry = stack.pop()
            tags.append(
                Tag(
                    name="comment",
                    text=source[entry.start : end + 3],
                    inner_text=source[entry.inner_start : end],
                    self_closed=end == entry.inner_start,
                    unclosed=False,
                    start_index=entry.start,
                    end_index=end + 3,
                    nest_level=len(stack),
                )
            )
            pos = end + 3
            continue

        pos = source.find("<", pos)
        if pos < 0:
            break

        if source.startswith(COMMENT_START, pos):
            stack.append(_OpenTag("comment", pos, pos + 4))
            pos += 4
            continue

        m = OPENING_TAG_RE.match(source, pos)
        if m:
            name = m.group(1).lower()
            if m.group(0).endswith("/>"):
                tags.append(
                    Tag(
                        name=name,
                        text=m.group(0),
                        inner_text="",
                        self_closed=True,
                        unclosed=False,
                        start_index=pos,
                        end_index=m.end(),
                        nest_level=len(stack),
                    )
                )
            else:
                stack.append(_OpenTag(name, pos, m.end()))
            pos = m.end()
            continue

        m = CLOSING_TAG_RE.match(source, pos)
        if m:
            name = m.group(1).lower()
            for level in range(len(stack) - 1, -1, -1):
                if stack[level].name == name:
                    break
            else:
                # Stray end tag; nothing on the stack to close
                pos = m.end()
                continue
            # Entries above the match were never closed.  They end where
            # this end tag starts.
            while len(stack) - 1 > level:
                entry = stack.pop()
                tags.append(_close(source, entry, pos, pos, True, len(stack)))
            entry = stack.pop()
            tags.append(_close(source, entry, m.end(), pos, False, level))
            pos = m.end()
            continue

        pos += 1

    # Whatever remains open runs to the end of the source
    while stack:
        entry = stack.pop()
        tags.append(_close(source, entry, length, length, True, len(stack)))

    tags.sort(key=lambda t: (t.start_index, -t.end_index))
    return tags
