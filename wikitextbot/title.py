# Page title normalization and namespace lookup
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
#
# This follows the title rules of MediaWiki's JavaScript Title class, which is
# enough for resolving template names without asking the wiki.

import json
import re
from functools import lru_cache
from importlib.resources import files
from typing import Optional, TypedDict

from .common import UNICODE_BIDI_RE
from .strutils import byte_length, uc_first

NS_MEDIA = -2
NS_SPECIAL = -1
NS_MAIN = 0
NS_TALK = 1
NS_TEMPLATE = 10

# Gadget namespaces do not capitalize the first letter of page names
CASE_SENSITIVE_NAMESPACES: frozenset[int] = frozenset([2300, 2301, 2302, 2303])

TITLE_MAX_BYTES = 255

WHITESPACE_RE = re.compile(
    r"[ _\u00a0\u1680\u180e\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+"
)
UNDERSCORE_TRIM_RE = re.compile(r"^_+|_+$")
NAMESPACE_SPLIT_RE = re.compile(r"^(.+?)_*:_*(.*)$")
INVALID_TITLE_RE = re.compile(
    r"[^ %!\"$&'()*,\-./0-9:;=?@A-Z\\^_`a-z~+\u0080-\U0010ffff]"
    r"|%[0-9A-Fa-f]{2}"
    r"|&[0-9A-Za-z\u0080-\U0010ffff]+;"
)


class NamespaceDataEntry(TypedDict):
    id: int
    name: str
    aliases: list[str]
    content: bool
    issubject: bool
    istalk: bool


def _ns_key(name: str) -> str:
    return WHITESPACE_RE.sub("_", name.strip()).lower()


class NamespaceData:
    """Namespace names, canonical names and aliases of one wiki, loaded from
    data/<lang_code>/namespaces.json."""

    __slots__ = ("lang_code", "entries", "ids_by_name", "names_by_id")

    def __init__(self, lang_code: str = "en") -> None:
        self.lang_code = lang_code
        data_folder = files("wikitextbot") / "data" / lang_code
        with data_folder.joinpath("namespaces.json").open(
            encoding="utf-8"
        ) as f:
            self.entries: dict[str, NamespaceDataEntry] = json.load(f)
        self.ids_by_name: dict[str, int] = {}
        self.names_by_id: dict[int, str] = {}
        for canonical, entry in self.entries.items():
            ns_id = entry["id"]
            if ns_id == NS_MAIN:
                self.names_by_id[ns_id] = ""
                continue
            self.names_by_id[ns_id] = entry["name"]
            for name in [canonical, entry["name"]] + entry["aliases"]:
                self.ids_by_name[_ns_key(name)] = ns_id

    def lookup(self, prefix: str) -> Optional[int]:
        """Returns the namespace id for a local name, canonical name or
        alias, or None if ``prefix`` is not a namespace name."""
        return self.ids_by_name.get(_ns_key(prefix))

    def local_name(self, ns_id: int) -> str:
        return self.names_by_id.get(ns_id, "")

    def prefix(self, ns_id: int) -> str:
        """Returns "Name:" for the namespace, or "" for the main namespace."""
        name = self.local_name(ns_id)
        return name + ":" if name else ""


@lru_cache(maxsize=None)
def get_namespace_data(lang_code: str = "en") -> NamespaceData:
    return NamespaceData(lang_code)


class Title:
    """A normalized page title.  ``title`` is stored in the underscore
    form without the namespace prefix."""

    __slots__ = ("title", "namespace", "fragment", "lang_code")

    def __init__(
        self,
        title: str,
        namespace: int,
        fragment: Optional[str] = None,
        lang_code: str = "en",
    ) -> None:
        self.title = title
        self.namespace = namespace
        self.fragment = fragment
        self.lang_code = lang_code

    @classmethod
    def new_from_text(
        cls, text: str, namespace: int = NS_MAIN, lang_code: str = "en"
    ) -> Optional["Title"]:
        """Parses ``text`` into a Title.  ``namespace`` is used when the text
        has no namespace prefix.  Returns None if the text is not a valid
        page title."""
        ns_data = get_namespace_data(lang_code)
        title = UNICODE_BIDI_RE.sub("", text)
        title = WHITESPACE_RE.sub("_", title)
        title = UNDERSCORE_TRIM_RE.sub("", title)
        if "\ufffd" in title:
            return None

        # A leading colon forces the main namespace
        if title.startswith(":"):
            namespace = NS_MAIN
            title = UNDERSCORE_TRIM_RE.sub("", title[1:])
        if not title:
            return None

        m = NAMESPACE_SPLIT_RE.match(title)
        if m:
            ns_id = ns_data.lookup(m.group(1))
            if ns_id is not None:
                namespace = ns_id
                title = m.group(2)
                # Talk:File:x is not a valid title
                if namespace == NS_TALK:
                    m2 = NAMESPACE_SPLIT_RE.match(title)
                    if m2 and ns_data.lookup(m2.group(1)) is not None:
                        return None

        fragment: Optional[str] = None
        idx = title.find("#")
        if idx >= 0:
            fragment = title[idx + 1 :].replace("_", " ")
            title = UNDERSCORE_TRIM_RE.sub("", title[:idx])

        if INVALID_TITLE_RE.search(title):
            return None
        if "." in title and (
            title in (".", "..")
            or title.startswith("./")
            or title.startswith("../")
            or "/./" in title
            or "/../" in title
            or title.endswith("/.")
            or title.endswith("/..")
        ):
            return None
        if "~~~" in title:
            return None
        if namespace != NS_SPECIAL and byte_length(title) > TITLE_MAX_BYTES:
            return None
        if not title and namespace != NS_MAIN:
            return None
        if title.startswith(":"):
            return None

        return cls(title, namespace, fragment, lang_code)

    @property
    def namespace_prefix(self) -> str:
        return get_namespace_data(self.lang_code).prefix(self.namespace)

    @property
    def main(self) -> str:
        """The page name without the namespace prefix, with spaces."""
        name = self.title.replace("_", " ")
        if self.namespace in CASE_SENSITIVE_NAMESPACES:
            return name
        return uc_first(name)

    @property
    def prefixed_text(self) -> str:
        return self.namespace_prefix + self.main

    @property
    def prefixed_db(self) -> str:
        return self.prefixed_text.replace(" ", "_")

    def with_fragment(self, text: str) -> str:
        if self.fragment is None:
            return text
        return text + "#" + self.fragment

    def __str__(self) -> str:
        return self.prefixed_text

    def __repr__(self) -> str:
        return "Title({!r}, {}, {!r})".format(
            self.title, self.namespace, self.fragment
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Title):
            return NotImplemented
        return (
            self.namespace == other.namespace
            and self.main == other.main
            and self.fragment == other.fragment
        )

    def __hash__(self) -> int:
        return hash((self.namespace, self.main, self.fragment))
