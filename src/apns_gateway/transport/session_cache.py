"""Store of open sessions keyed by (host, port)."""

from __future__ import annotations

from collections.abc import Iterator

from apns_gateway.transport.socket_abstraction import TLSSession

SessionKey = tuple[str, int]


class SessionCache:
    """Mapping from (host, port) to the session the cache owns.

    Entries are the only source of truth for "is there an open connection".
    Not thread-safe; callers sharing one cache across threads must serialize
    access to it.
    """

    def __init__(self) -> None:
        self._sessions: dict[SessionKey, TLSSession] = {}

    def get(self, host: str, port: int) -> TLSSession | None:
        return self._sessions.get((host, port))

    def put(self, host: str, port: int, session: TLSSession) -> None:
        self._sessions[(host, port)] = session

    def pop(self, host: str, port: int) -> TLSSession | None:
        return self._sessions.pop((host, port), None)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[SessionKey]:
        return iter(list(self._sessions))
