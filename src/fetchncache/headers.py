from __future__ import annotations

from collections.abc import Iterable

from requests.structures import CaseInsensitiveDict

from fetchncache.exceptions import EmptyHeaderNameError, MalformedHeaderError

HEADER_SEPARATOR = ": "


def parse_headers(lines: Iterable[str] | None) -> CaseInsensitiveDict:
    """Parse ``"Name: Value"`` strings into a case-insensitive header mapping.

    Empty strings are skipped. The line is split on the first ``": "`` and both
    halves are trimmed; a repeated name replaces the earlier value.

    Raises:
        MalformedHeaderError: a line has no ``": "`` separator
        EmptyHeaderNameError: the name is blank after trimming
    """
    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    for line in lines or ():
        if not line:
            continue
        name, sep, value = line.partition(HEADER_SEPARATOR)
        if not sep:
            raise MalformedHeaderError(
                f"invalid header format: {line!r} (expected 'name: value')",
                context={"header": line},
            )
        name = name.strip()
        if not name:
            raise EmptyHeaderNameError(
                f"empty header name in: {line!r}",
                context={"header": line},
            )
        headers[name] = value.strip()
    return headers
