# String length and trimming helpers
#
# Copyright (c) 2020-2022 Tatu Ylonen.  See file LICENSE and https://ylonen.org
#
# Python strings are indexed by code point, which is the offset unit used by
# every parser in this package.  The MediaWiki API measures page sizes in
# UTF-8 bytes and the browser-side counters in UTF-16 code units, so both are
# provided here.

from typing import Callable, NamedTuple, Optional


class TrimmedValue(NamedTuple):
    new_val: str
    trimmed: bool


def byte_length(text: str) -> int:
    """Returns the UTF-8 byte length of ``text``.  Lone surrogates count as
    three bytes each, as MediaWiki would store them."""
    return len(text.encode("utf-8", "surrogatepass"))


def utf16_length(text: str) -> int:
    """Returns the number of UTF-16 code units needed for ``text``."""
    return sum(2 if ord(ch) > 0xFFFF else 1 for ch in text)


def code_point_length(text: str) -> int:
    return len(text)


def char_at(text: str, offset: int, backwards: bool = False) -> str:
    """Returns the character at ``offset``, or the one just before it when
    ``backwards`` is True.  Returns an empty string when out of range."""
    if backwards:
        offset -= 1
    if offset < 0 or offset >= len(text):
        return ""
    return text[offset]


def uc_first(text: str) -> str:
    """Uppercases the first character of ``text``.  Characters whose
    uppercase form is longer than one character (e.g. "ß") are kept as they
    are, which is what MediaWiki does with page titles."""
    if not text:
        return text
    first = text[0].upper()
    if len(first) != 1:
        first = text[0]
    return first + text[1:]


def lc_first(text: str) -> str:
    if not text:
        return text
    return text[0].lower() + text[1:]


def _trim_length(
    safe_val: str,
    new_val: str,
    length: int,
    length_fn: Callable[[str], int],
) -> TrimmedValue:
    if length_fn(new_val) <= length:
        return TrimmedValue(new_val, False)

    # Find what was inserted into safe_val by comparing both ends, keeping
    # the search within the shorter string (think "foo" -> "foofoo")
    matches_len = min(len(new_val), len(safe_val))
    start_matches = 0
    while (
        start_matches < matches_len
        and safe_val[start_matches] == new_val[start_matches]
    ):
        start_matches += 1
    end_matches = 0
    while (
        end_matches < matches_len - start_matches
        and safe_val[len(safe_val) - 1 - end_matches]
        == new_val[len(new_val) - 1 - end_matches]
    ):
        end_matches += 1

    head = new_val[:start_matches]
    inserted = new_val[start_matches : len(new_val) - end_matches]
    tail = new_val[len(new_val) - end_matches :]

    # Chop characters off the inserted part until the limit is satisfied
    while length_fn(head + inserted + tail) > length and inserted:
        inserted = inserted[:-1]

    result = head + inserted + tail
    # A pathological length_fn may never be satisfied; report honestly
    return TrimmedValue(result, result != new_val)


def trim_byte_length(
    safe_val: str,
    new_val: str,
    byte_limit: int,
    filter_fn: Optional[Callable[[str], str]] = None,
) -> TrimmedValue:
    """Trims ``new_val`` down to ``byte_limit`` UTF-8 bytes, assuming it was
    produced by inserting text somewhere into ``safe_val`` (a value known to
    be within the limit, or "").  "foo" -> "fobaro" with a limit of 4 gives
    "fobo", not "foba".  ``filter_fn`` is applied before measuring only."""
    if filter_fn is not None:

        def length_fn(val: str) -> int:
            return byte_length(filter_fn(val))

    else:
        length_fn = byte_length
    return _trim_length(safe_val, new_val, byte_limit, length_fn)


def trim_code_point_length(
    safe_val: str,
    new_val: str,
    code_point_limit: int,
    filter_fn: Optional[Callable[[str], str]] = None,
) -> TrimmedValue:
    """Like trim_byte_length(), but the limit is in code points."""
    if filter_fn is not None:

        def length_fn(val: str) -> int:
            return code_point_length(filter_fn(val))

    else:
        length_fn = code_point_length
    return _trim_length(safe_val, new_val, code_point_limit, length_fn)
