"""
Protocol classes for the relay's transport boundary.

Protocols define interfaces without requiring explicit inheritance. The
transport adapter (chat_relay/api/ws/websocket.py) is the only place that
knows about Starlette; the connection handler only sees these protocols,
which keeps it testable with plain mocks.

Example:
    ```python
    from chat_relay.protocols import TransportSession


    class EchoSession:
        async def send_text(self, text: str) -> None:
            print(text)


    handler = ConnectionHandler("u1", registry)
    await handler.on_open(EchoSession())
    ```
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransportSession(Protocol):
    """
    Send side of one live client session.

    Implementations raise chat_relay.exceptions.TransportError when the
    frame cannot be written (remote already closed, socket broken).
    """

    async def send_text(self, text: str) -> None:
        """
        Write one text frame to the client.

        Args:
            text: Frame payload.
        """
        ...


@runtime_checkable
class ConnectionEvents(Protocol):
    """
    Lifecycle events a transport adapter delivers for one connection.

    The adapter calls on_open once, on_message for every text frame,
    on_error for transport faults and on_close exactly when the session
    ends (normal or abnormal).
    """

    async def on_open(self, transport: TransportSession) -> None: ...

    async def on_message(self, text: str) -> object: ...

    async def on_close(self, close_code: int | None = None) -> None: ...

    async def on_error(self, error: BaseException) -> None: ...
