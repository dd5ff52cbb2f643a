# Maps log ids and revision ids to the usernames behind them
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import enum
from collections.abc import Iterable, Mapping
from typing import Any, Literal, Optional, Union

from lru import LRU

from .api import ApiError, ApiResponse, MediaWikiApi
from .logging_utils import logger
from .title import Title

IDKind = Literal["logid", "diffid"]


class IDState(enum.Enum):
    PENDING = enum.auto()  # Waiting for the next process() call
    RESOLVED = enum.auto()
    UNRESOLVABLE = enum.auto()  # Deleted, suppressed or not a valid id
    UNKNOWN = enum.auto()  # Never seen, or dropped from the cache


class IDResolver:
    """Resolves log ids (account creations) or revision ids to usernames.

    Callers first call evaluate() for each id they need.  Known ids return
    the username at once; the rest are queued and looked up in batches by
    process().  Ids that the wiki cannot resolve are remembered so that
    they are never queried again."""

    __slots__ = (
        "api",
        "kind",
        "lang_code",
        "_resolved",
        "_processing",
        "_unresolvable",
    )

    def __init__(
        self,
        api: MediaWikiApi,
        kind: IDKind,
        cache_size: int = 10000,
        lang_code: str = "en",
    ) -> None:
        if kind not in ("logid", "diffid"):
            raise ValueError("invalid id kind {!r}".format(kind))
        self.api = api
        self.kind = kind
        self.lang_code = lang_code
        self._resolved = LRU(cache_size)
        # dict keeps the order in which ids were queued
        self._processing: dict[str, None] = {}
        self._unresolvable: set[str] = set()

    def evaluate(self, id: Union[int, str]) -> Optional[str]:
        """Returns the username for ``id`` if already known.  Otherwise
        queues the id for the next process() call (unless it is known to be
        unresolvable) and returns None."""
        key = str(id)
        username = self._resolved.get(key)
        if username is not None:
            return username
        if key not in self._unresolvable:
            self._processing[key] = None
        return None

    def register(self, mapping: Mapping[Union[int, str], str]) -> "IDResolver":
        for id, username in mapping.items():
            key = str(id)
            if key not in self._unresolvable:
                self._resolved[key] = username
            self._processing.pop(key, None)
        return self

    def abandon(self, ids: Iterable[Union[int, str]]) -> "IDResolver":
        """Marks ``ids`` as unresolvable."""
        for id in ids:
            key = str(id)
            if key in self._resolved:
                del self._resolved[key]
            self._processing.pop(key, None)
            self._unresolvable.add(key)
        return self

    def state(self, id: Union[int, str]) -> IDState:
        key = str(id)
        if key in self._unresolvable:
            return IDState.UNRESOLVABLE
        if key in self._resolved:
            return IDState.RESOLVED
        if key in self._processing:
            return IDState.PENDING
        return IDState.UNKNOWN

    def processing_ids(self) -> list[str]:
        return list(self._processing)

    def _request(self, ids: list[str]) -> tuple[str, list[Any]]:
        if self.kind == "logid":
            params: dict[str, Any] = {
                "list": "logevents",
                "leprop": "ids|title",
                "letype": "newusers",
                "leids": ids,
                "lelimit": "max",
            }
            batch_param = "leids"
        else:
            params = {
                "revids": ids,
                "prop": "revisions",
                "rvprop": "ids|user",
            }
            batch_param = "revids"
        return batch_param, self.api.mass_request(params, batch_param)

    def _username(self, title: str) -> str:
        """Strips the user namespace from the title of a newusers log
        entry."""
        t = Title.new_from_text(title, lang_code=self.lang_code)
        if t is None:
            return title
        return t.main

    def _parse_batch(self, res: ApiResponse) -> Optional[dict[str, str]]:
        """Returns the id to username mapping found in one response, or None
        if the response does not have the expected shape."""
        found: dict[str, str] = {}
        query = res.get("query")
        if not isinstance(query, dict):
            return None
        if self.kind == "logid":
            logevents = query.get("logevents")
            if not isinstance(logevents, list):
                return None
            for event in logevents:
                logid = event.get("logid")
                title = event.get("title")
                # Suppressed entries lack the title
                if not isinstance(logid, int) or not title:
                    continue
                found[str(logid)] = self._username(title)
        else:
            pages = query.get("pages")
            if not isinstance(pages, list):
                return None
            for page in pages:
                for rev in page.get("revisions") or ():
                    revid = rev.get("revid")
                    user = rev.get("user")
                    if not isinstance(revid, int) or not user:
                        continue
                    found[str(revid)] = user
        return found

    def process(self) -> "IDResolver":
        """Looks up all queued ids.  Ids missing from a successful response
        are abandoned.  Ids of a failed or malformed batch stay queued for
        the next call.  Never raises ApiError."""
        ids = self.processing_ids()
        if not ids:
            return self
        batch_param, responses = self._request(ids)
        found: dict[str, str] = {}
        unresolved = set(ids)
        limit = self.api.apilimit
        for i, res in enumerate(responses):
            batch = ids[i * limit : (i + 1) * limit]
            if isinstance(res, ApiError):
                if len(responses) == 1:
                    return self
                unresolved.difference_update(batch)
                continue
            batch_found = self._parse_batch(res)
            if batch_found is None:
                logger.warning(
                    "Unexpected response for %s batch %d", batch_param, i
                )
                unresolved.difference_update(batch)
                continue
            found.update(batch_found)
            unresolved.difference_update(batch_found)

        logger.debug(
            "Resolved %d of %d %s values", len(found), len(ids), self.kind
        )
        return self.register(found).abandon(unresolved)
