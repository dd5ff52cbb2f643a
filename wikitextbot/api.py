# Minimal client for the MediaWiki Action API
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

import requests

from .logging_utils import logger

DEFAULT_USER_AGENT = "wikitextbot/0.1 (MediaWiki maintenance bot)"

ApiParams = Mapping[str, Any]
ApiResponse = dict[str, Any]


class ApiError(Exception):
    """An error reported by the API, or a failed request.  ``code`` is the
    API error code, or "http" and "invalidjson" for transport failures."""

    def __init__(
        self, code: str, info: str, response: Optional[ApiResponse] = None
    ) -> None:
        super().__init__("{}: {}".format(code, info))
        self.code = code
        self.info = info
        self.response = response


@dataclass(frozen=True)
class Revision:
    """The current revision of a page, as returned by fetch_revision()."""

    pageid: int
    revid: int
    ns: int
    title: str
    basetimestamp: str  # Timestamp of the revision
    curtimestamp: str  # Timestamp of the request
    length: int  # Page size in bytes
    content: str
    redirect: bool


def _format_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "1" if value else None
    if isinstance(value, (list, tuple, set, frozenset)):
        return "|".join(str(x) for x in value)
    return str(value)


class MediaWikiApi:
    """Talks to one wiki through ``api_url`` (e.g.
    https://ja.wikipedia.org/w/api.php).  Login cookies are kept in the
    session."""

    __slots__ = ("api_url", "timeout", "apilimit", "session")

    def __init__(
        self,
        api_url: str,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 60,
        apilimit: int = 50,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.apilimit = apilimit
        self.session = requests.Session()
        self.session.headers.update({"user-agent": user_agent})

    def request(self, params: ApiParams, method: str = "GET") -> ApiResponse:
        """Sends a request and returns the decoded response.  ``action``
        defaults to "query".  List values are joined with "|" and False
        values are left out.  Raises ApiError on failure."""
        data: dict[str, str] = {
            "action": "query",
            "format": "json",
            "formatversion": "2",
        }
        for key, value in params.items():
            formatted = _format_value(value)
            if formatted is None:
                data.pop(key, None)
            else:
                data[key] = formatted

        try:
            if method == "POST":
                r = self.session.post(
                    self.api_url, data=data, timeout=self.timeout
                )
            else:
                r = self.session.get(
                    self.api_url, params=data, timeout=self.timeout
                )
            r.raise_for_status()
        except requests.RequestException as e:
            raise ApiError("http", str(e)) from e

        try:
            result = r.json()
        except ValueError as e:
            raise ApiError("invalidjson", str(e)) from e
        if not isinstance(result, dict):
            raise ApiError(
                "invalidjson", "unexpected response {!r}".format(result)
            )
        if "error" in result:
            error = result["error"]
            raise ApiError(
                error.get("code", "unknown"), error.get("info", ""), result
            )
        return result

    def get_token(self, token_type: str = "csrf") -> str:
        res = self.request({"meta": "tokens", "type": token_type})
        try:
            return res["query"]["tokens"][token_type + "token"]
        except (KeyError, TypeError) as e:
            raise ApiError("notoken", "no {} token".format(token_type)) from e

    def login(self, username: str, password: str) -> None:
        """Logs in with a bot password (Special:BotPasswords)."""
        token = self.get_token("login")
        res = self.request(
            {
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgtoken": token,
            },
            method="POST",
        )
        login = res.get("login", {})
        if login.get("result") != "Success":
            raise ApiError(
                "loginfailed", login.get("reason", login.get("result", ""))
            )
        logger.info("Logged in as %s", login.get("lgusername", username))

    def continued_request(
        self, params: ApiParams, limit: float = math.inf
    ) -> list[ApiResponse]:
        """Repeats a query with the ``continue`` values of each response,
        at most ``limit`` times.  Returns all responses."""
        responses = []
        cont: dict[str, Any] = {}
        count = 0
        while count < limit:
            res = self.request({**params, **cont})
            responses.append(res)
            count += 1
            if "continue" not in res:
                break
            cont = res["continue"]
        return responses

    def mass_request(
        self, params: ApiParams, batch_param: str
    ) -> list[Union[ApiResponse, ApiError]]:
        """Sends the request once per ``apilimit`` values of the multi-value
        parameter ``batch_param``.  Returns one entry per batch, in order:
        the response, or the ApiError of a failed batch."""
        values = params[batch_param]
        if isinstance(values, str):
            values = values.split("|")
        values = list(values)
        results: list[Union[ApiResponse, ApiError]] = []
        for i in range(0, len(values), self.apilimit):
            batch = values[i : i + self.apilimit]
            try:
                results.append(
                    self.request({**params, batch_param: batch}, method="POST")
                )
            except ApiError as e:
                logger.warning("Batch %d of %s failed: %s", i, batch_param, e)
                results.append(e)
        return results

    def fetch_revision(
        self, title: str
    ) -> Union[Revision, Literal[False], None]:
        """Fetches the current revision of a page.  Returns False if the page
        does not exist and None if the request failed."""
        try:
            res = self.request(
                {
                    "titles": title,
                    "prop": "info|revisions",
                    "rvprop": "ids|timestamp|content",
                    "rvslots": "main",
                    "curtimestamp": True,
                }
            )
        except ApiError as e:
            logger.error("Failed to fetch %s: %s", title, e)
            return None

        pages = res.get("query", {}).get("pages")
        if not isinstance(pages, list) or not pages:
            return None
        page = pages[0]
        if page.get("missing"):
            return False
        revisions = page.get("revisions")
        if (
            not isinstance(page.get("pageid"), int)
            or not revisions
            or not isinstance(res.get("curtimestamp"), str)
            or not isinstance(page.get("length"), int)
        ):
            logger.warning("Unexpected response for %s", title)
            return None
        rev = revisions[0]
        return Revision(
            pageid=page["pageid"],
            revid=rev["revid"],
            ns=page["ns"],
            title=page["title"],
            basetimestamp=rev["timestamp"],
            curtimestamp=res["curtimestamp"],
            length=page["length"],
            content=rev["slots"]["main"]["content"],
            redirect=bool(page.get("redirect")),
        )

    def edit(
        self,
        title: str,
        text: str,
        summary: str,
        minor: bool = False,
        bot: bool = True,
        basetimestamp: Optional[str] = None,
        starttimestamp: Optional[str] = None,
    ) -> ApiResponse:
        """Saves ``text`` as the new content of ``title``.  Pass the
        timestamps of the fetched revision to detect edit conflicts.
        Raises ApiError unless the edit succeeded."""
        params: dict[str, Any] = {
            "action": "edit",
            "title": title,
            "text": text,
            "summary": summary,
            "minor": minor,
            "bot": bot,
            "nocreate": True,
            "token": self.get_token(),
        }
        if basetimestamp is not None:
            params["basetimestamp"] = basetimestamp
        if starttimestamp is not None:
            params["starttimestamp"] = starttimestamp
        res = self.request(params, method="POST")
        result = res.get("edit", {})
        if result.get("result") != "Success":
            raise ApiError(
                "editfailed", str(result.get("result", "no result")), res
            )
        return result
