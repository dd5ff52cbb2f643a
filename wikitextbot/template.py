# Template transclusions: argument storage and rendering back to wikitext
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any, NamedTuple, Optional, Union

from .common import clean
from .logging_utils import logger
from .strutils import uc_first
from .title import NS_MAIN, NS_TEMPLATE, Title

# Leading colon of a template name, e.g. {{:Main page}}
LEADING_COLON_RE = re.compile(r"^[^\S\r\n]*:[^\S\r\n]*")
LINEBREAK_BEFORE_RE = re.compile(r"\n[^\S\n\r]*$")
LINEBREAK_AFTER_RE = re.compile(r"^[^\S\n\r]*\n")


class TemplateError(ValueError):
    """Raised when a Template is constructed from an invalid name."""


@dataclass(frozen=True)
class TemplateArgument:
    """One argument of a template.  ``name``, ``value`` and ``text`` are
    cleaned; the ``uf`` fields keep the original whitespace."""

    name: str
    value: str
    text: str
    ufname: str
    ufvalue: str
    uftext: str
    unnamed: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LinebreakPredicate(NamedTuple):
    """Decides where render() puts line breaks: ``name`` is called with the
    rendered name and ``args`` with each argument."""

    name: Callable[[str], bool]
    args: Callable[[TemplateArgument], bool]


ArgName = Union[str, re.Pattern]
ArgPredicate = Callable[[TemplateArgument], bool]


def _strip_pipe(text: str) -> str:
    return text[1:] if text.startswith("|") else text


class Template:
    """A {{template}} transclusion.  Templates can be built in code and
    rendered with render(); templates found in wikitext are ParsedTemplate
    instances."""

    __slots__ = (
        "name",  # Name as written, cleaned
        "full_name",  # First slot of the template including comments etc.
        "clean_name",  # Namespace and case normalized name
        "full_clean_name",  # full_name with name replaced by clean_name
        "lang_code",
        "_args",
        "_overridden_args",
        "_hierarchy",
    )

    def __init__(
        self,
        name: str,
        full_name: Optional[str] = None,
        hierarchy: Optional[Sequence[Sequence[str]]] = None,
        lang_code: str = "en",
    ) -> None:
        self.name = clean(name)
        if "\n" in self.name:
            raise TemplateError(
                "template name {!r} contains a newline".format(name)
            )
        self.full_name = clean(full_name or name, trim=False)
        if self.name not in self.full_name:
            raise TemplateError(
                "full name {!r} does not contain name {!r}".format(
                    self.full_name, self.name
                )
            )
        self.lang_code = lang_code
        self._args: list[TemplateArgument] = []
        self._overridden_args: list[TemplateArgument] = []
        self._hierarchy: list[list[str]] = [
            list(group) for group in hierarchy or []
        ]
        self.clean_name = self._make_clean_name(self.name)
        self.full_clean_name = self.full_name.replace(
            self.name, self.clean_name, 1
        )

    def _make_clean_name(self, name: str) -> str:
        m = LEADING_COLON_RE.match(name)
        colon = m.group(0) if m else ""
        name = name[len(colon) :]
        title = Title.new_from_text(name, lang_code=self.lang_code)
        if title is None:
            return colon + uc_first(name)
        if title.namespace == NS_TEMPLATE:
            return title.with_fragment(title.main)
        if title.namespace == NS_MAIN:
            return colon.strip() + title.with_fragment(title.main)
        return title.with_fragment(title.prefixed_text)

    def get_name(self, prop: Optional[str] = None) -> str:
        """Returns the name as written, or with ``prop`` one of "full",
        "clean" or "fullclean" the corresponding name variant."""
        if prop is None:
            return self.name
        if prop == "full":
            return self.full_name
        if prop == "clean":
            return self.clean_name
        if prop == "fullclean":
            return self.full_clean_name
        raise ValueError("invalid name property {!r}".format(prop))

    # Argument registration

    def _keys(self) -> list[str]:
        return [arg.name for arg in self._args]

    def _index_of(self, name: str) -> int:
        for i, arg in enumerate(self._args):
            if arg.name == name:
                return i
        return -1

    def _next_unnamed(self) -> str:
        keys = set(self._keys())
        i = 1
        while str(i) in keys:
            i += 1
        return str(i)

    def _find_hierarchy(self, name: str) -> Optional[tuple[int, int]]:
        """Looks for a registered argument in the same hierarchy group as
        ``name``.  Returns its index and its priority relative to ``name``:
        1 if it comes earlier in the group, -1 if later, 0 if it is the same
        name.  Returns None if there is no such argument."""
        if not self._hierarchy or not self._args:
            return None
        for group in self._hierarchy:
            if name not in group:
                continue
            for i, arg in enumerate(self._args):
                if arg.name in group:
                    new_rank = group.index(name)
                    old_rank = group.index(arg.name)
                    if old_rank < new_rank:
                        return i, 1
                    if old_rank > new_rank:
                        return i, -1
                    return i, 0
        return None

    def _register(self, name: str, value: str, log_override: bool) -> None:
        ufname = name
        ufvalue = value
        name = clean(name)
        unnamed = not name
        if unnamed:
            # Whitespace is significant in unnamed arguments, except for
            # the line breaks that end them
            value = clean(value, trim=False).rstrip("\n")
            name = self._next_unnamed()
            text = "|" + _strip_pipe(value)
            uftext = "|" + _strip_pipe(ufvalue)
        else:
            value = clean(value)
            text = "|" + name + "=" + _strip_pipe(value)
            uftext = "|" + ufname + "=" + _strip_pipe(ufvalue)
        arg = TemplateArgument(
            name=name,
            value=value,
            text=text,
            ufname=ufname,
            ufvalue=ufvalue,
            uftext=uftext,
            unnamed=unnamed,
        )

        idx = -1
        hier = self._find_hierarchy(name)
        if hier is not None:
            idx, priority = hier
            found = self._args[idx]
            if (
                (priority == -1 and arg.value)
                or (priority == 1 and not found.value)
                or (priority == 0 and arg.value)
            ):
                if log_override:
                    self._overridden_args.append(found)
            else:
                # The registered argument wins
                if log_override:
                    self._overridden_args.append(arg)
                return
        else:
            idx = self._index_of(name)
            if idx >= 0 and log_override:
                self._overridden_args.append(self._args[idx])

        if idx < 0:
            self._args.append(arg)
        elif log_override:
            del self._args[idx]
            self._args.append(arg)
        else:
            self._args[idx] = arg

    def add_arg(self, name: str, value: str) -> None:
        """Adds an argument.  An argument it overrides is removed and kept in
        get_overridden_args(), and the new argument goes last.  An empty
        ``name`` gives the argument the lowest unused number."""
        self._register(name, value, True)

    def add_args(self, args: Iterable[tuple[str, str]]) -> None:
        for name, value in args:
            self._register(name, value, True)

    def set_arg(self, name: str, value: str) -> None:
        """Like add_arg(), but an overridden argument is replaced in place
        and not logged."""
        self._register(name, value, False)

    def set_args(self, args: Iterable[tuple[str, str]]) -> None:
        for name, value in args:
            self._register(name, value, False)

    # Argument lookup

    def _matches(
        self,
        arg: TemplateArgument,
        name: ArgName,
        condition_predicate: Optional[ArgPredicate],
    ) -> bool:
        if isinstance(name, str):
            if arg.name != name:
                return False
        elif not name.search(arg.name):
            return False
        return condition_predicate is None or condition_predicate(arg)

    def get_arg(
        self,
        name: ArgName,
        condition_predicate: Optional[ArgPredicate] = None,
        find_first: bool = False,
    ) -> Optional[TemplateArgument]:
        """Returns the last argument whose name equals ``name`` (or matches
        it, if it is a compiled pattern), or the first with
        ``find_first``."""
        found = None
        for arg in self._args:
            if self._matches(arg, name, condition_predicate):
                if find_first:
                    return arg
                found = arg
        return found

    def has_arg(
        self,
        name: ArgName,
        condition_predicate: Optional[ArgPredicate] = None,
    ) -> bool:
        return any(
            self._matches(arg, name, condition_predicate) for arg in self._args
        )

    def get_args(self) -> list[TemplateArgument]:
        return list(self._args)

    def delete_arg(self, name: str) -> Optional[TemplateArgument]:
        idx = self._index_of(name)
        if idx < 0:
            return None
        return self._args.pop(idx)

    def delete_args(self, names: Iterable[str]) -> list[TemplateArgument]:
        deleted = []
        for name in names:
            arg = self.delete_arg(name)
            if arg is not None:
                deleted.append(arg)
        return deleted

    def get_overridden_args(self) -> list[TemplateArgument]:
        return list(self._overridden_args)

    # Rendering

    def render(
        self,
        nameprop: Optional[str] = None,
        subst: bool = False,
        unformatted: bool = False,
        sort_key: Optional[Callable[[TemplateArgument], Any]] = None,
        linebreak: bool = False,
        linebreak_predicate: Optional[LinebreakPredicate] = None,
    ) -> str:
        """Renders the template as wikitext.

        ``nameprop`` selects the name variant (see get_name()), ``subst``
        prefixes it with "subst:", ``unformatted`` renders the arguments with
        their original whitespace.  ``sort_key`` orders the rendered
        arguments without changing the stored order.  ``linebreak`` puts
        each slot on its own line; ``linebreak_predicate`` decides that per
        slot and takes precedence."""
        prefix = "subst:" if subst else ""
        if nameprop is None:
            name = prefix + self.name
        elif nameprop == "full":
            name = self.full_name.replace(self.name, prefix + self.name, 1)
        elif nameprop == "clean":
            name = prefix + self.clean_name
        elif nameprop == "fullclean":
            name = self.full_clean_name.replace(
                self.clean_name, prefix + self.clean_name, 1
            )
        else:
            raise ValueError("invalid name property {!r}".format(nameprop))

        parts = ["{{"]
        if linebreak_predicate is not None:
            if linebreak_predicate.name(name):
                name += "\n"
            parts.append(name)
        elif linebreak:
            parts.append(name.rstrip("\n") + "\n")
        else:
            parts.append(name)

        args = list(self._args)
        if sort_key is not None:
            args.sort(key=sort_key)
        for arg in args:
            text = arg.uftext if unformatted else arg.text
            if linebreak_predicate is not None:
                if linebreak_predicate.args(arg):
                    text += "\n"
                parts.append(text)
            elif linebreak:
                parts.append(text.rstrip("\n") + "\n")
            else:
                parts.append(text)
        parts.append("}}")
        return "".join(parts)

    def __str__(self) -> str:
        return self.render(nameprop="full", unformatted=True)

    def __repr__(self) -> str:
        return "<{} {!r} args={}>".format(
            type(self).__name__, self.name, len(self._args)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "full_name": self.full_name,
            "clean_name": self.clean_name,
            "full_clean_name": self.full_clean_name,
            "args": [arg.to_dict() for arg in self._args],
            "overridden_args": [arg.to_dict() for arg in self._overridden_args],
        }


class ParsedTemplate(Template):
    """A Template found in wikitext.  Remembers where it was found so that
    it can be replaced in the text later."""

    __slots__ = ("_original_text", "_start_index", "_end_index", "_nest_level")

    def __init__(
        self,
        name: str,
        full_name: str,
        args: Iterable[tuple[str, str]],
        original_text: str,
        start_index: int,
        end_index: int,
        nest_level: int = 0,
        hierarchy: Optional[Sequence[Sequence[str]]] = None,
        lang_code: str = "en",
    ) -> None:
        super().__init__(
            name, full_name=full_name, hierarchy=hierarchy, lang_code=lang_code
        )
        # Names and values of parsed arguments start with the pipe
        self.add_args(
            (_strip_pipe(arg_name), _strip_pipe(value))
            for arg_name, value in args
        )
        self._original_text = original_text
        self._start_index = start_index
        self._end_index = end_index
        self._nest_level = nest_level

    @classmethod
    def new(cls, *args: Any, **kwargs: Any) -> Optional["ParsedTemplate"]:
        """Same as the constructor, but returns None instead of raising
        TemplateError."""
        try:
            return cls(*args, **kwargs)
        except TemplateError as e:
            logger.debug("Rejected template candidate: %s", e)
            return None

    @property
    def original_text(self) -> str:
        return self._original_text

    @property
    def start_index(self) -> int:
        return self._start_index

    @property
    def end_index(self) -> int:
        return self._end_index

    @property
    def nest_level(self) -> int:
        return self._nest_level

    def render_original(self) -> str:
        return self._original_text

    def replace_in(
        self,
        wikitext: str,
        replacement: Optional[str] = None,
        use_index: bool = True,
        **render_options: Any,
    ) -> str:
        """Replaces this template in ``wikitext`` with ``replacement``, or
        with render(**render_options) if no replacement is given.

        With ``use_index`` the template is replaced at its saved position,
        and only if the text there is still the original text; otherwise
        ``wikitext`` is returned unchanged.  Several templates of one text
        must then be replaced starting from the end.  Without ``use_index``
        the first occurrence of the original text is replaced."""
        if replacement is None:
            replacement = self.render(**render_options)
        if not use_index:
            return wikitext.replace(self._original_text, replacement, 1)
        start = self._start_index
        end = self._end_index
        if wikitext[start:end] != self._original_text:
            return wikitext
        before = wikitext[:start]
        after = wikitext[end:]
        if replacement == "" and (
            LINEBREAK_BEFORE_RE.search(before)
            or LINEBREAK_AFTER_RE.match(after)
        ):
            # Do not leave an empty line behind
            before = before.rstrip()
            after = ("\n" if before else "") + after.lstrip()
        return before + replacement + after

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "original_text": self._original_text,
                "start_index": self._start_index,
                "end_index": self._end_index,
                "nest_level": self._nest_level,
            }
        )
        return data
