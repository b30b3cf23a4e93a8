from typing import Any

from fastapi import APIRouter
from starlette.websockets import WebSocket

from chat_relay.api.ws.websocket import RelayWebSocketEndpoint
from chat_relay.handlers.connection_handler import RelayOutcome
from chat_relay.logging import logger

router = APIRouter()


@router.websocket_route("/websocket/{user_id}")
class Relay(RelayWebSocketEndpoint):
    """
    Point-to-point relay endpoint.

    Clients connect to ``/websocket/{user_id}`` and send JSON text frames
    such as ``{"toUserId": "u2", "text": "hi"}``. Each frame is forwarded to
    the connection registered for ``toUserId`` with ``fromUserId`` set to the
    sender. Undeliverable frames are dropped without notifying the sender.
    """

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        """
        Route one received text frame.

        Args:
            websocket: The WebSocket connection instance.
            data: The decoded text frame.
        """
        if self.handler is None:
            return

        outcome = await self.handler.on_message(data)
        if outcome not in (RelayOutcome.DELIVERED, RelayOutcome.IGNORED):
            logger.debug(
                f"Frame from user {self.handler.user_id} not relayed: {outcome.value}"
            )
