# Finds {{template}} transclusions in wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

from collections.abc import Callable, Iterable, Sequence, Set
from dataclasses import dataclass
from typing import Optional

from .common import DEFAULT_TP_TAGS, WIKILINK_RE, WarningFn, report
from .parameter_parser import Parameter
from .tag_parser import Tag
from .template import ParsedTemplate


class _Slot:
    """Name slot or argument slot of the template being scanned.  ``text``
    is everything in the slot; argument slots start with the pipe.  ``name``
    is set when an "=" is found (it then also starts with the pipe)."""

    __slots__ = ("text", "name", "value")

    def __init__(self) -> None:
        self.text = ""
        self.name = ""
        self.value = ""


def _add_fragment(
    slots: list[_Slot], fragment: str, new: bool = False, nonname: bool = False
) -> None:
    """Adds ``fragment`` to the last slot, or to a new slot if ``new``.
    ``nonname`` fragments (tags, parameters, links and nested templates
    swallowed whole) never contribute to names."""
    if new or not slots:
        slots.append(_Slot())
    slot = slots[-1]
    if len(slots) == 1:
        slot.text += fragment
        if not nonname:
            slot.name += fragment
        return
    idx = fragment.find("=")
    if idx >= 0 and not slot.name and not nonname:
        slot.name = slot.text + fragment[:idx]
        slot.text += fragment
        slot.value = slot.text[len(slot.name) + 1 :]
    else:
        slot.text += fragment
        slot.value += fragment


@dataclass
class _ScanOptions:
    name_predicate: Optional[Callable[[str], bool]]
    template_predicate: Optional[Callable[[ParsedTemplate], bool]]
    recursive_predicate: Optional[Callable[[Optional[ParsedTemplate]], bool]]
    hierarchy: Optional[Sequence[Sequence[str]]]
    lang_code: str
    warn: Optional[WarningFn]


def _finish_template(
    source: str,
    start: int,
    end: int,
    slots: list[_Slot],
    nest_level: int,
    options: _ScanOptions,
) -> Optional[ParsedTemplate]:
    name = slots[0].name if slots else ""
    full_name = slots[0].text if slots else ""
    template = ParsedTemplate.new(
        name,
        full_name,
        [(slot.name, slot.value) for slot in slots[1:]],
        source[start:end],
        start,
        end,
        nest_level=nest_level,
        hierarchy=options.hierarchy,
        lang_code=options.lang_code,
    )
    if template is None:
        report(
            options.warn,
            "Invalid template name {!r} at {}".format(full_name, start),
            "template_parser/80",
        )
    return template


def _scan(
    source: str,
    start: int,
    end: int,
    nest_level: int,
    skips: dict[int, int],
    options: _ScanOptions,
) -> list[ParsedTemplate]:
    """Scans ``source[start:end]`` for templates.  ``skips`` maps the
    start index of each span that must be consumed whole to its end index.
    Nested templates are found by scanning the inside of each template
    again, so the returned offsets are all relative to ``source``.  Each
    unclosed "{{" followed by a "}}" somewhere later starts the scan over,
    so text full of such braces takes quadratic time."""
    templates: list[ParsedTemplate] = []
    i = start
    while True:
        depth = 0  # Unclosed braces
        tmpl_start = 0
        slots: list[_Slot] = []
        while i < end:
            skip_end = skips.get(i)
            if skip_end is not None:
                if depth:
                    _add_fragment(slots, source[i:skip_end], nonname=True)
                i = skip_end
                continue
            if depth:
                m = WIKILINK_RE.match(source, i, end)
                if m:
                    _add_fragment(slots, m.group(0), nonname=True)
                    i = m.end()
                    continue

            if depth == 0:
                if source.startswith("{{", i, end):
                    tmpl_start = i
                    slots = []
                    depth = 2
                    i += 2
                else:
                    i += 1
            elif depth == 2:
                if source.startswith("{{", i, end):
                    depth += 2
                    _add_fragment(slots, "{{", nonname=True)
                    i += 2
                elif source.startswith("}}", i, end):
                    i += 2
                    depth = 0
                    template = _finish_template(
                        source, tmpl_start, i, slots, nest_level, options
                    )
                    if template is not None and (
                        options.name_predicate is None
                        or options.name_predicate(template.clean_name)
                    ):
                        if (
                            options.template_predicate is None
                            or options.template_predicate(template)
                        ):
                            templates.append(template)
                    if (
                        options.recursive_predicate is None
                        or options.recursive_predicate(template)
                    ):
                        inner = source[tmpl_start + 2 : i - 2]
                        if "{{" in inner and "}}" in inner:
                            templates.extend(
                                _scan(
                                    source,
                                    tmpl_start + 2,
                                    i - 2,
                                    nest_level + 1,
                                    skips,
                                    options,
                                )
                            )
                else:
                    ch = source[i]
                    _add_fragment(slots, ch, new=ch == "|")
                    i += 1
            else:
                # Inside a nested template; only keep the braces balanced
                if source.startswith("{{", i, end):
                    fragment = "{{"
                    depth += 2
                elif source.startswith("}}", i, end):
                    fragment = "}}"
                    depth -= 2
                else:
                    fragment = source[i]
                i += len(fragment)
                _add_fragment(slots, fragment, nonname=True)

        if depth == 0:
            break
        # The last "{{" was never closed.  Look again right after it, unless
        # nothing after it can close a template.
        report(
            options.warn,
            "Unclosed template at {}".format(tmpl_start),
            "template_parser/171",
        )
        if source.find("}}", tmpl_start + 2, end) < 0:
            break
        i = tmpl_start + 1

    return templates


def parse_templates(
    source: str,
    tags: Iterable[Tag],
    parameters: Iterable[Parameter],
    *,
    name_predicate: Optional[Callable[[str], bool]] = None,
    template_predicate: Optional[Callable[[ParsedTemplate], bool]] = None,
    recursive_predicate: Optional[
        Callable[[Optional[ParsedTemplate]], bool]
    ] = None,
    hierarchy: Optional[Sequence[Sequence[str]]] = None,
    tp_names: Set[str] = DEFAULT_TP_TAGS,
    lang_code: str = "en",
    warn: Optional[WarningFn] = None,
) -> list[ParsedTemplate]:
    """Returns the templates in ``source``.  ``tags`` and ``parameters``
    must come from the same source.

    ``name_predicate`` is called with the clean name and
    ``template_predicate`` with the template; templates for which either
    returns False are left out.  ``recursive_predicate`` decides whether to
    look for templates inside a template (it gets None for a template whose
    name is invalid).  Nested templates follow their parent in the result,
    with ``nest_level`` one higher."""
    skips: dict[int, int] = {}
    # Tags come sorted with enclosing tags first
    for tag in tags:
        if tag.name in tp_names:
            skips.setdefault(tag.start_index, tag.end_index)
    for param in parameters:
        if param.nest_level == 0:
            skips.setdefault(param.start_index, param.end_index)
    options = _ScanOptions(
        name_predicate=name_predicate,
        template_predicate=template_predicate,
        recursive_predicate=recursive_predicate,
        hierarchy=hierarchy,
        lang_code=lang_code,
        warn=warn,
    )
    return _scan(source, 0, len(source), 0, skips, options)
