import uuid
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect

from chat_relay.constants import USER_ID_PATH_PARAM
from chat_relay.exceptions import TransportError
from chat_relay.handlers.connection_handler import ConnectionHandler
from chat_relay.logging import clear_log_context, logger, set_log_context
from chat_relay.managers.session_registry import SessionRegistry
from chat_relay.middlewares.correlation_id import (
    new_correlation_id,
    set_correlation_id,
)


class StarletteTransportSession:
    """
    TransportSession backed by a Starlette WebSocket.

    Translates the send errors Starlette and the ASGI server raise for a
    closed or broken socket into TransportError.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def send_text(self, text: str) -> None:
        """
        Write one text frame.

        Args:
            text: Frame payload.

        Raises:
            TransportError: If the socket is closed or the write fails.
        """
        try:
            await self.websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError, OSError) as ex:
            # WebSocketDisconnect: Client disconnected
            # RuntimeError: WebSocket in invalid state (already closed)
            # OSError: Network errors
            raise TransportError(f"{type(ex).__name__}: {ex}") from ex


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint that drives a ConnectionHandler.

    Translates the ASGI connection lifecycle into ConnectionHandler events:
    accept -> on_open, text frame -> on_message, fault -> on_error,
    disconnect -> on_close. The registry is taken from
    ``app.state.session_registry``.
    """

    encoding = "text"

    handler: ConnectionHandler | None = None

    async def dispatch(self) -> None:
        """
        Manage the WebSocket connection lifecycle.

        The steps are:
        1. Accept the connection and open a handler (on_connect).
        2. Receive frames until the client disconnects, passing each one to
           on_receive.
        3. On any fault, report it to the handler and mark the close code as
           an internal error before re-raising.
        4. Always close the handler (on_disconnect).
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            if self.handler is not None:
                await self.handler.on_error(exc)
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    def get_registry(self, websocket: WebSocket) -> SessionRegistry:
        """Return the registry shared by every connection of this app."""
        return websocket.app.state.session_registry

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accept the connection and open its ConnectionHandler.

        The user id comes from the ``{user_id}`` path parameter. A correlation
        id taken from the X-Correlation-ID upgrade header (or generated) is
        bound to this connection's task for logging.
        """
        await super().on_connect(websocket)

        user_id: str = websocket.path_params[USER_ID_PATH_PARAM]
        self.connection_id = str(uuid.uuid4())

        headers = dict(websocket.headers)
        set_correlation_id(
            headers.get("x-correlation-id") or new_correlation_id()
        )
        set_log_context(user_id=user_id, connection_id=self.connection_id)

        self.handler = ConnectionHandler(user_id, self.get_registry(websocket))
        await self.handler.on_open(StarletteTransportSession(websocket))
        logger.debug(
            f"Client connected to websocket (connection_id: {self.connection_id})"
        )

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        if self.handler is not None:
            await self.handler.on_message(data)

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """
        Close the ConnectionHandler and drop the per-connection log context.
        """
        await super().on_disconnect(websocket, close_code)
        if self.handler is not None:
            await self.handler.on_close(close_code)
        clear_log_context()
