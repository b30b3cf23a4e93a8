import threading
from typing import TYPE_CHECKING

from chat_relay.logging import logger

if TYPE_CHECKING:
    from chat_relay.handlers.connection_handler import ConnectionHandler


class SessionRegistry:
    """
    Registry of live relay sessions.

    Maps user ids to the connection handler currently serving them and keeps
    a count of distinct online users. The map and the counter are mutated
    together under a single lock, so the count only changes when a key goes
    from absent to present or from present to absent.

    The lock is a threading.Lock and is never held across an await, so the
    registry is safe both for asyncio tasks and for worker threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: dict[str, "ConnectionHandler"] = {}
        self._online_count = 0

    def register(self, user_id: str, handle: "ConnectionHandler") -> bool:
        """
        Map user_id to handle.

        If the key is already present the mapping is replaced in place and
        the online count is left unchanged, otherwise the key is inserted and
        the count incremented.

        Args:
            user_id: Caller-supplied user identifier.
            handle: Handler now serving this user.

        Returns:
            True if an existing entry was replaced, False on a fresh insert.
        """
        was_replacement, _ = self.register_and_count(user_id, handle)
        return was_replacement

    def register_and_count(
        self, user_id: str, handle: "ConnectionHandler"
    ) -> tuple[bool, int]:
        """
        Same as register, also returning the online count right after it.

        The count is read under the same lock as the mutation, so it is the
        value this call produced even when other sessions open or close
        concurrently.

        Returns:
            tuple[bool, int]: (was_replacement, online count).
        """
        with self._lock:
            was_replacement = user_id in self._connections
            self._connections[user_id] = handle
            if not was_replacement:
                self._online_count += 1
            count = self._online_count

        logger.debug(
            f"handler ({id(handle)}) registered for key {user_id} "
            f"(replacement: {was_replacement}, online: {count})"
        )
        return was_replacement, count

    def unregister(
        self, user_id: str, handle: "ConnectionHandler | None" = None
    ) -> bool:
        """
        Remove the mapping for user_id.

        When handle is given the entry is only removed if it still points at
        that handle. A handler that was superseded by a reconnect under the
        same user id therefore cannot evict its successor.

        Args:
            user_id: User identifier to remove.
            handle: Expected current handler, or None to remove unconditionally.

        Returns:
            True if an entry was removed and the count decremented.
        """
        was_present, _ = self.unregister_and_count(user_id, handle)
        return was_present

    def unregister_and_count(
        self, user_id: str, handle: "ConnectionHandler | None" = None
    ) -> tuple[bool, int]:
        """
        Same as unregister, also returning the online count right after it.

        Returns:
            tuple[bool, int]: (was_present, online count).
        """
        with self._lock:
            current = self._connections.get(user_id)
            if current is None or (handle is not None and current is not handle):
                return False, self._online_count
            del self._connections[user_id]
            self._online_count -= 1
            count = self._online_count

        logger.debug(
            f"handler ({id(current)}) removed for key {user_id} "
            f"(online: {count})"
        )
        return True, count

    def lookup(self, user_id: str) -> "ConnectionHandler | None":
        """
        Get the handler currently serving user_id.

        Args:
            user_id: The user identifier to look up.

        Returns:
            The handler if the user is online, None otherwise.
        """
        with self._lock:
            return self._connections.get(user_id)

    def current_count(self) -> int:
        """Return the number of distinct users currently online."""
        with self._lock:
            return self._online_count

    def online_user_ids(self) -> list[str]:
        """Return a snapshot of the user ids currently online."""
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._connections
