# Removes {{pp}} protection templates from pages that are not protected
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import re
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

import dateparser

from .api import ApiError, MediaWikiApi
from .logging_utils import logger
from .tag_parser import Tag
from .template import ParsedTemplate
from .wikitext import Wikitext

# Names in the Template namespace, with spaces rather than underscores
PP_TEMPLATES: frozenset[str] = frozenset(
    [
        "Pp",
        "Pp-dispute",
        "Pp-move",
        "Pp-move-dispute",
        "Pp-move-vandalism",
        "Pp-move-vand",
        "Pp-move-vd",
        "Pp-office",
        "Pp-office-dmca",
        "Pp-permanent",
        "Pp-reset",
        "Pp-semi-indef",
        "Pp-template",
        "Pp-vandalism",
        "Pp-vand",
        "Pp-vd",
        "保護",
        "保護S",
        "保護s",
        "全保護",
        "半保護",
        "Sprotected",
        "半保護S",
        "拡張半保護",
        "保護運用",
        "半保護運用",
        "半永久保護",
        "移動保護",
        "移動拡張半保護",
    ]
)

# User, MediaWiki and Module pages are never edited
EXCLUDE_NAMESPACES: frozenset[int] = frozenset([2, 8, 828])

DEFAULT_EXCLUDE_TITLES: tuple[str, ...] = (
    "Wikipedia:主要なテンプレート/メンテナンス",
    "Template‐ノート:Pp/testcases",
    "Template:Pp-meta/sandbox",
)

PP_SUBPAGE_RE = re.compile(
    r"^Template:(?:{})/".format(
        "|".join(re.escape(x) for x in sorted(PP_TEMPLATES))
    )
)
SCRIPT_PAGE_RE = re.compile(r"\.(?:js|css|json)$")
DEMOLEVEL_RE = re.compile(r"demolevel", re.I)

EDIT_SUMMARY = "Bot: [[Template:Pp|保護テンプレート]]の除去"

# Stop this many seconds before the next scheduled run
QUIT_MARGIN = 10


def is_protected(
    protections: Iterable[dict[str, Any]], now: Optional[datetime] = None
) -> bool:
    """Checks whether any of the ``protection`` entries of a page (as
    returned by prop=info&inprop=protection) is still in effect.  Expiries
    starting with "in" (infinite, infinity) never end."""
    if now is None:
        now = datetime.now(timezone.utc)
    for prot in protections:
        expiry = prot.get("expiry", "")
        if expiry.startswith("in"):
            return True
        date = dateparser.parse(
            expiry,
            settings={"TIMEZONE": "UTC", "RETURN_AS_TIMEZONE_AWARE": True},
        )
        if date is None:
            logger.warning("Unparsable protection expiry %r", expiry)
            continue
        if date > now:
            return True
    return False


def _is_pp(template: ParsedTemplate) -> bool:
    return template.clean_name in PP_TEMPLATES and not template.has_arg(
        DEMOLEVEL_RE
    )


def _is_empty_noinclude(tag: Tag) -> bool:
    return (
        tag.name == "noinclude"
        and not tag.self_closed
        and not tag.unclosed
        and not tag.inner_text.strip()
    )


def remove_pp_templates(content: str, lang_code: str = "ja") -> Optional[str]:
    """Returns ``content`` with the {{pp}} templates removed, or None if
    there is none.  <noinclude></noinclude> pairs left empty are removed as
    well.  Templates with a demolevel argument are documentation examples
    and are kept."""
    wikitext = Wikitext(content, lang_code=lang_code)
    new_content = wikitext.modify_templates(
        lambda templates: ["" if _is_pp(t) else None for t in templates]
    )
    if new_content == content:
        return None
    return wikitext.modify_tags(
        lambda tags: ["" if _is_empty_noinclude(t) else None for t in tags]
    )


class PpRemover:
    """Finds pages that transclude a {{pp}} template but are not protected,
    and removes the templates from them.

    ``exclude_titles`` is the set of pages never to be edited.  Pages where
    no template could be removed are added to it, so that later runs of the
    same instance skip them."""

    def __init__(
        self,
        api: MediaWikiApi,
        exclude_titles: Optional[Iterable[str]] = None,
        lang_code: str = "ja",
    ) -> None:
        self.api = api
        self.lang_code = lang_code
        self.exclude_titles: set[str] = set(
            DEFAULT_EXCLUDE_TITLES if exclude_titles is None else exclude_titles
        )

    def _skip(self, ns: Any, title: Any) -> bool:
        return (
            not isinstance(ns, int)
            or not title
            or ns in EXCLUDE_NAMESPACES
            or title in self.exclude_titles
            or PP_SUBPAGE_RE.match(title) is not None
            # Scripts in a subject namespace
            or (ns % 2 == 0 and SCRIPT_PAGE_RE.search(title) is not None)
        )

    def collect(self) -> list[str]:
        """Returns the titles of pages that transclude a {{pp}} template,
        except the ones that are never edited."""
        found: dict[str, None] = {}
        for name in sorted(PP_TEMPLATES):
            try:
                responses = self.api.continued_request(
                    {
                        "titles": "Template:" + name,
                        "prop": "transcludedin",
                        "tiprop": "title",
                        "tilimit": "max",
                    }
                )
            except ApiError as e:
                logger.error("Failed to list transclusions of %s: %s", name, e)
                continue
            for res in responses:
                for page in res.get("query", {}).get("pages", []):
                    for t in page.get("transcludedin") or ():
                        if not self._skip(t.get("ns"), t.get("title")):
                            found[t["title"]] = None
        return list(found)

    def filter_protected(self, titles: Iterable[str]) -> Optional[set[str]]:
        """Returns the protected pages among ``titles``, or None if any
        request failed.  The result is then incomplete and must not be used
        to decide that a page is unprotected."""
        titles = list(titles)
        if not titles:
            return set()
        now = datetime.now(timezone.utc)
        protected: set[str] = set()
        responses = self.api.mass_request(
            {"titles": titles, "prop": "info", "inprop": "protection"},
            "titles",
        )
        for res in responses:
            if isinstance(res, ApiError):
                return None
            pages = res.get("query", {}).get("pages")
            if not isinstance(pages, list):
                return None
            for page in pages:
                protection = page.get("protection")
                if protection is None:
                    return None
                if protection and is_protected(protection, now):
                    protected.add(page["title"])
        return protected

    def edit_page(self, title: str) -> bool:
        """Removes the templates from one page.  Returns True if the page
        was edited."""
        rev = self.api.fetch_revision(title)
        if not rev:
            logger.warning("%s: failed to fetch the page", title)
            return False
        new_content = remove_pp_templates(rev.content, self.lang_code)
        if new_content is None:
            logger.info(
                "%s: no {{pp}} templates found; excluded from later runs",
                title,
            )
            self.exclude_titles.add(title)
            return False
        try:
            self.api.edit(
                title,
                new_content,
                EDIT_SUMMARY,
                minor=True,
                bot=True,
                basetimestamp=rev.basetimestamp,
                starttimestamp=rev.curtimestamp,
            )
        except ApiError as e:
            logger.error("%s: edit failed: %s", title, e)
            return False
        logger.info("%s: edit done", title)
        return True

    def run(self, quit_before: Optional[float] = None) -> int:
        """Runs the cleanup once.  ``quit_before`` is a UNIX time; no edit
        is started later than QUIT_MARGIN seconds before it.  Returns the
        number of pages edited."""
        logger.info("Checking for {{pp}} templates to remove from pages")
        titles = self.collect()
        if not titles:
            logger.info("0 pages found")
            return 0
        protected = self.filter_protected(titles)
        if protected is None:
            logger.warning("Failed to filter protected pages; cancelled")
            return 0
        unprotected = [t for t in titles if t not in protected]
        logger.info(
            "%d page%s found",
            len(unprotected),
            "" if len(unprotected) == 1 else "s",
        )

        edited = 0
        for title in unprotected:
            if quit_before is not None and time.time() > (
                quit_before - QUIT_MARGIN
            ):
                logger.info(
                    "The next run starts within %d seconds; "
                    "the remaining pages are left for later",
                    QUIT_MARGIN,
                )
                break
            if self.edit_page(title):
                edited += 1
        return edited
