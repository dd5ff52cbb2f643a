# Finds {{{parameter}}} placeholders in wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
from collections.abc import Iterable, Set
from dataclasses import asdict, dataclass
from typing import Any, Optional

from .common import DEFAULT_TP_TAGS, WarningFn, in_tp_tag, report
from .tag_parser import Tag

# The match is too short when the default value holds other parameters or
# templates, e.g. {{{1|{{{page|{{PAGENAME}}}}}}}} matches only up to the
# first "}}}".  Such matches are extended by _extend_match().
PARAMETER_RE = re.compile(r"\{\{\{[^{][^}]*\}\}\}")
LEFT_BRACES_RE = re.compile(r"\{{2,}")
RIGHT_BRACES_RE = re.compile(r"\}{2,}")


@dataclass(frozen=True)
class Parameter:
    text: str
    start_index: int
    end_index: int
    nest_level: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _count_braces(pattern: re.Pattern[str], text: str) -> int:
    return sum(len(run) for run in pattern.findall(text))


def _extend_match(
    source: str, end: int, left: int, right: int
) -> Optional[int]:
    """Scans forward from the last "}}}" of a short match, counting the
    brace runs it passes, until the right runs close all left braces.
    Returns the new end index, or None if the input runs out first."""
    pos = end - 3
    right -= 3
    length = len(source)
    while pos < length:
        m = LEFT_BRACES_RE.match(source, pos)
        if m is not None:
            # e.g. the second of two sibling parameters in a default value
            left += len(m.group(0))
            pos = m.end()
            continue
        m = RIGHT_BRACES_RE.match(source, pos)
        if m is None:
            pos += 1
            continue
        run = len(m.group(0))
        if left <= right + run:
            return pos + left - right
        right += run
        pos = m.end()
    return None


def parse_parameters(
    source: str,
    tags: Iterable[Tag],
    tp_names: Set[str] = DEFAULT_TP_TAGS,
    warn: Optional[WarningFn] = None,
) -> list[Parameter]:
    """Returns the parameters in ``source``, including parameters nested in
    the default values of other parameters.  ``tags`` are the tags of the
    same source; parameters inside transclusion-preventing tags are
    ignored."""
    tp_tags = [t for t in tags if t.name in tp_names]
    spans: list[tuple[int, int]] = []
    pos = 0
    while True:
        m = PARAMETER_RE.search(source, pos)
        if m is None:
            break
        start, end = m.span()
        left = _count_braces(LEFT_BRACES_RE, m.group(0))
        right = _count_braces(RIGHT_BRACES_RE, m.group(0))
        if left > right:
            new_end = _extend_match(source, end, left, right)
            if new_end is None:
                report(
                    warn,
                    "Unparsable parameter: {}".format(m.group(0)),
                    "parameter_parser/78",
                )
                pos = end
                continue
            end = new_end

        pos = end
        if in_tp_tag(tp_tags, start, end):
            continue
        spans.append((start, end))
        if "{{{" in source[start + 3 : end]:
            # Rescan the inside for nested parameters
            pos = start + 3

    params = []
    for start, end in spans:
        nest_level = sum(
            1
            for s, e in spans
            if s <= start and end <= e and (s, e) != (start, end)
        )
        params.append(Parameter(source[start:end], start, end, nest_level))
    params.sort(key=lambda p: p.start_index)
    return params
