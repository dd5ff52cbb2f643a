# Wikitext document: parses lazily, caches the results and applies edits
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Literal, Optional, Union

from .common import tp_tag_names
from .logging_utils import logger
from .parameter_parser import Parameter, parse_parameters
from .section_parser import Section, parse_sections
from .strutils import byte_length
from .tag_parser import Tag, parse_tags
from .template import ParsedTemplate
from .template_parser import parse_templates

if TYPE_CHECKING:
    from .api import MediaWikiApi, Revision

# Spaces and the line break after an entity that was removed from its own
# line
REST_OF_LINE_RE = re.compile(r"[^\S\n\r]*\n")

ModifyPredicate = Callable[[list[Any]], list[Optional[str]]]


class Wikitext:
    """Wikitext of one page.  Tags, parameters and sections are parsed on
    first use and cached until the content is modified.  Parsing never
    raises on malformed markup; problems are logged and collected in
    ``warnings``."""

    __slots__ = (
        "_content",
        "_revision",
        "_modified",
        "_tp_names",
        "_tags",
        "_parameters",
        "_sections",
        "_lock",
        "lang_code",
        "warnings",
    )

    def __init__(
        self,
        wikitext: str,
        revision: Optional["Revision"] = None,
        tp_include: Optional[Iterable[str]] = None,
        tp_exclude: Optional[Iterable[str]] = None,
        lang_code: str = "en",
    ) -> None:
        assert isinstance(wikitext, str)
        self._content = wikitext
        self._revision = revision
        self._modified = False
        self._tp_names = tp_tag_names(tp_include, tp_exclude)
        self._tags: Optional[list[Tag]] = None
        self._parameters: Optional[list[Parameter]] = None
        self._sections: Optional[list[Section]] = None
        self._lock = threading.RLock()
        self.lang_code = lang_code
        self.warnings: list[dict[str, str]] = []

    def _warn(self, msg: str, called_from: str) -> None:
        # called_from is a static string used to sort messages by origin
        self.warnings.append({"msg": msg, "called_from": called_from})

    @property
    def content(self) -> str:
        return self._content

    @property
    def wikitext(self) -> str:
        return self._content

    def __len__(self) -> int:
        return len(self._content)

    @property
    def byte_length(self) -> int:
        """Page size in bytes.  Taken from the revision while the content is
        unmodified."""
        if self._revision is not None and not self._modified:
            return self._revision.length
        return byte_length(self._content)

    def get_revision(self) -> Optional["Revision"]:
        return self._revision

    def __repr__(self) -> str:
        text = self._content
        if len(text) > 40:
            text = text[:37] + "..."
        return "Wikitext({!r})".format(text)

    # Fetching

    @classmethod
    def fetch(
        cls, api: "MediaWikiApi", title: str
    ) -> Union["Revision", Literal[False], None]:
        """Fetches the current revision of ``title``.  Returns False if the
        page does not exist and None if the request failed."""
        return api.fetch_revision(title)

    @classmethod
    def read(
        cls, api: "MediaWikiApi", title: str
    ) -> Union[str, Literal[False], None]:
        """Like fetch(), but returns only the content."""
        rev = api.fetch_revision(title)
        if not rev:
            return rev
        return rev.content

    @classmethod
    def new_from_title(
        cls, api: "MediaWikiApi", title: str, **kwargs: Any
    ) -> Union["Wikitext", Literal[False], None]:
        """Fetches ``title`` and returns a Wikitext of its current revision.
        Other keyword arguments are passed to the constructor."""
        rev = api.fetch_revision(title)
        if not rev:
            return rev
        return cls(rev.content, revision=rev, **kwargs)

    # Parsing

    def get_tags(self) -> list[Tag]:
        with self._lock:
            if self._tags is None:
                self._tags = parse_tags(self._content)
            return list(self._tags)

    def parse_tags(
        self, condition_predicate: Optional[Callable[[Tag], bool]] = None
    ) -> list[Tag]:
        """Returns the tags and comments for which ``condition_predicate``
        returns True (all of them by default)."""
        tags = self.get_tags()
        if condition_predicate is None:
            return tags
        return [t for t in tags if condition_predicate(t)]

    def get_parameters(self) -> list[Parameter]:
        with self._lock:
            if self._parameters is None:
                self._parameters = parse_parameters(
                    self._content,
                    self.get_tags(),
                    tp_names=self._tp_names,
                    warn=self._warn,
                )
            return list(self._parameters)

    def parse_parameters(
        self,
        recursive: bool = True,
        condition_predicate: Optional[Callable[[Parameter], bool]] = None,
    ) -> list[Parameter]:
        """Returns the parameters.  Parameters nested in the default values
        of other parameters are included only if ``recursive``."""
        params = self.get_parameters()
        return [
            p
            for p in params
            if (recursive or p.nest_level == 0)
            and (condition_predicate is None or condition_predicate(p))
        ]

    def get_sections(self) -> list[Section]:
        with self._lock:
            if self._sections is None:
                self._sections = parse_sections(
                    self._content, self.get_tags(), tp_names=self._tp_names
                )
            return list(self._sections)

    def parse_sections(self) -> list[Section]:
        return self.get_sections()

    def parse_templates(
        self,
        *,
        name_predicate: Optional[Callable[[str], bool]] = None,
        template_predicate: Optional[
            Callable[[ParsedTemplate], bool]
        ] = None,
        recursive_predicate: Optional[
            Callable[[Optional[ParsedTemplate]], bool]
        ] = None,
        hierarchy: Optional[Sequence[Sequence[str]]] = None,
    ) -> list[ParsedTemplate]:
        """Returns the templates of the content.  Not cached, because
        templates are mutable and the predicates differ between calls."""
        with self._lock:
            tags = self.get_tags()
            params = self.get_parameters()
            content = self._content
        return parse_templates(
            content,
            tags,
            params,
            name_predicate=name_predicate,
            template_predicate=template_predicate,
            recursive_predicate=recursive_predicate,
            hierarchy=hierarchy,
            tp_names=self._tp_names,
            lang_code=self.lang_code,
            warn=self._warn,
        )

    # Modification

    def _set_content(self, content: str) -> None:
        with self._lock:
            if content == self._content:
                return
            self._content = content
            self._modified = True
            self._tags = None
            self._parameters = None
            self._sections = None

    def _apply_modifications(
        self,
        spans: list[tuple[int, int, str]],
        values: Any,
        kind: str,
    ) -> str:
        """Splices ``values`` into the content.  ``spans`` holds the start,
        end and expected text of each entity; a None value leaves the entity
        unchanged.  Entities are replaced in list order.  After each
        replacement the spans after it are shifted and the spans enclosing
        it are resized.  Spans inside a replaced span are left as they are,
        so a later replacement of such a span is skipped unless its text is
        still found at the old position."""
        if not isinstance(values, list):
            raise TypeError(
                "modification predicate must return a list, got {}".format(
                    type(values).__name__
                )
            )
        if len(values) != len(spans):
            raise ValueError(
                "modification predicate returned {} values for {} {}".format(
                    len(values), len(spans), kind
                )
            )

        content = self._content
        current = [[start, end] for start, end, _ in spans]
        for i, value in enumerate(values):
            if value is None:
                continue
            if not isinstance(value, str):
                raise TypeError(
                    "modification #{} is not a str or None: {!r}".format(
                        i, value
                    )
                )
            start, end = current[i]
            expected = spans[i][2]
            if content[start:end] != expected:
                msg = "{} #{} no longer at {}:{}; not modified".format(
                    kind, i, start, end
                )
                logger.warning(msg)
                self._warn(msg, "wikitext/285")
                continue

            old_end = end
            if value == "" and (start == 0 or content[start - 1] == "\n"):
                m = REST_OF_LINE_RE.match(content, end)
                if m:
                    old_end = m.end()
            content = content[:start] + value + content[old_end:]
            delta = len(value) - (old_end - start)
            current[i] = [start, start + len(value)]
            for j, span in enumerate(current):
                if j == i:
                    continue
                if span[0] >= old_end:
                    span[0] += delta
                    span[1] += delta
                elif span[0] <= start and span[1] >= old_end:
                    span[1] += delta

        self._set_content(content)
        return content

    def modify_tags(
        self, predicate: Callable[[list[Tag]], list[Optional[str]]]
    ) -> str:
        """Calls ``predicate`` with the list of tags.  It must return a list
        of the same length holding the replacement text of each tag, or None
        to keep the tag.  Returns the new content.  A replacement of "" that
        leaves an empty line also removes the line."""
        tags = self.get_tags()
        values = predicate(tags)
        return self._apply_modifications(
            [(t.start_index, t.end_index, t.text) for t in tags],
            values,
            "tag",
        )

    def modify_templates(
        self,
        predicate: Callable[[list[ParsedTemplate]], list[Optional[str]]],
        **parse_options: Any,
    ) -> str:
        """Same as modify_tags(), for the templates returned by
        parse_templates(**parse_options)."""
        templates = self.parse_templates(**parse_options)
        values = predicate(templates)
        return self._apply_modifications(
            [(t.start_index, t.end_index, t.original_text) for t in templates],
            values,
            "template",
        )
