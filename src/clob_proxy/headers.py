"""Header filtering shared by both legs of the proxy.

Headers are carried as ordered lists of ``(name, value)`` pairs so repeated
names (``Set-Cookie``, ``Via`` ...) survive the trip. Raw header bytes are
decoded as latin-1, which maps every byte to one character and back.
"""

from typing import Iterable

# Only meaningful for a single connection leg
HOP_BY_HOP_HEADERS = frozenset({"host", "connection", "keep-alive", "transfer-encoding"})

HeaderPairs = list[tuple[str, str]]


class HeaderFilter:
    """Drops a fixed set of header names, compared case-insensitively."""

    def __init__(self, names: Iterable[str]):
        self._names = frozenset(name.lower() for name in names)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._names

    def apply(self, headers: Iterable[tuple[str, str]]) -> HeaderPairs:
        """Return the pairs whose name is not filtered, in their original order."""
        return [(name, value) for name, value in headers if name not in self]


def decode_raw(raw: Iterable[tuple[bytes, bytes]]) -> HeaderPairs:
    return [(name.decode("latin-1").lower(), value.decode("latin-1")) for name, value in raw]


def encode_raw(headers: Iterable[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]
