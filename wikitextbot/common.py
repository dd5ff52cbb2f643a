# Some definitions shared by the tag, parameter, template and section parsers
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Optional

from .logging_utils import logger

if TYPE_CHECKING:
    from .tag_parser import Tag

# Tags inside which wiki markup is not interpreted.  Templates, parameters
# and headings found inside these are ignored by the parsers.  "comment"
# stands for <!-- ... -->.
DEFAULT_TP_TAGS: frozenset[str] = frozenset(
    [
        "comment",
        "nowiki",
        "pre",
        "syntaxhighlight",
        "source",
        "math",
    ]
)

# Unicode bidirectional control characters (LRM, RLM, LRE..RLO)
UNICODE_BIDI_RE: re.Pattern[str] = re.compile(r"[\u200e\u200f\u202a-\u202e]+")

# Called with a message and a static string telling where it came from
WarningFn = Callable[[str, str], None]

# Wikilinks never nest, so a simple bracket match is enough to skip them
WIKILINK_RE: re.Pattern[str] = re.compile(r"\[\[[^\[\]]*?\]\]")


def clean(text: str, trim: bool = True) -> str:
    """Removes Unicode bidi characters from ``text``, and strips leading and
    trailing whitespace unless ``trim`` is False."""
    text = UNICODE_BIDI_RE.sub("", text)
    return text.strip() if trim else text


def tp_tag_names(
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> frozenset[str]:
    """Returns the set of transclusion-preventing tag names, starting from
    DEFAULT_TP_TAGS, adding ``include`` and then removing ``exclude``."""
    names = set(DEFAULT_TP_TAGS)
    if include is not None:
        names.update(x.lower() for x in include)
    if exclude is not None:
        names.difference_update(x.lower() for x in exclude)
    return frozenset(names)


def in_tp_tag(tp_tags: Iterable["Tag"], start: int, end: int) -> bool:
    """Checks whether the span [start, end) is strictly inside one of the
    given transclusion-preventing tags.  A tag left open runs to the end of
    the input, so a span may end where it ends."""
    return any(
        t.start_index < start
        and (end < t.end_index or (t.unclosed and end == t.end_index))
        for t in tp_tags
    )


def report(warn: Optional[WarningFn], msg: str, sortid: str) -> None:
    """Logs a recoverable markup problem and passes it on to ``warn``."""
    logger.debug("%s [%s]", msg, sortid)
    if warn is not None:
        warn(msg, sortid)
