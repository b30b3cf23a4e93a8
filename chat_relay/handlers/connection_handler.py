"""
Per-connection relay handler.

One ConnectionHandler exists for every live WebSocket session. It owns the
session's send side, keeps the shared SessionRegistry up to date as the
session opens and closes, and routes inbound text frames to the handler of
the addressed recipient.

Every failure is scoped to one message or one connection: the handler
catches relay errors, logs them and reports a RelayOutcome instead of
raising into the transport.
"""

import asyncio
from enum import Enum

from chat_relay.exceptions import (
    DeliveryFailureError,
    MalformedPayloadError,
    TransportError,
    UnknownRecipientError,
)
from chat_relay.logging import logger
from chat_relay.managers.session_registry import SessionRegistry
from chat_relay.protocols import TransportSession
from chat_relay.schemas.message import RelayMessage
from chat_relay.settings import app_settings
from chat_relay.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_messages_relayed_total,
    ws_push_total,
)


class ConnectionState(str, Enum):
    """Lifecycle states of a relay connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class RelayOutcome(str, Enum):
    """
    Result of handling one inbound text frame.

    Attributes:
        DELIVERED: Forwarded to the recipient's connection.
        IGNORED: Blank frame, or the connection is not open.
        MALFORMED: Frame is not a valid relay record.
        UNKNOWN_RECIPIENT: toUserId is blank or not online on this server.
        DELIVERY_FAILED: Recipient found but the send failed.
    """

    DELIVERED = "delivered"
    IGNORED = "ignored"
    MALFORMED = "malformed"
    UNKNOWN_RECIPIENT = "unknown_recipient"
    DELIVERY_FAILED = "delivery_failed"


class ConnectionHandler:
    """
    Handles the lifecycle and message routing of one relay connection.

    Implements the ConnectionEvents protocol: the transport adapter calls
    on_open, on_message, on_error and on_close. The handler receives the
    shared registry at construction and never touches global state.
    """

    def __init__(self, user_id: str, registry: SessionRegistry) -> None:
        self.user_id = user_id
        self.registry = registry
        self.state = ConnectionState.CONNECTING
        self.transport: TransportSession | None = None
        # One frame write at a time per connection
        self._send_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"<ConnectionHandler user_id={self.user_id!r} state={self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def on_open(self, transport: TransportSession) -> None:
        """
        Register this connection and confirm it to the client.

        A reconnect under a user id that is already online replaces the
        previous entry without changing the online count. Failure to send
        the confirmation is logged and leaves the connection open.

        Args:
            transport: Send side of the accepted session.
        """
        self.transport = transport
        self.state = ConnectionState.OPEN

        was_replacement, online = self.registry.register_and_count(
            self.user_id, self
        )
        ws_connections_active.set(online)

        if was_replacement:
            ws_connections_total.labels(status="replaced").inc()
            logger.info(
                f"User {self.user_id} reconnected, previous session replaced, "
                f"online users: {online}"
            )
        else:
            ws_connections_total.labels(status="opened").inc()
            logger.info(f"User {self.user_id} connected, online users: {online}")

        try:
            await self.send_message(
                app_settings.CONNECT_CONFIRMATION_TEMPLATE.format(
                    user_id=self.user_id
                )
            )
        except TransportError as ex:
            logger.error(
                f"Failed to confirm connection of user {self.user_id}: {ex}"
            )

    async def on_message(self, text: str) -> RelayOutcome:
        """
        Route one inbound text frame to its recipient.

        The frame is parsed as a relay record, its fromUserId is forced to
        this connection's user id and the result is sent to the connection
        registered for toUserId. Nothing is queued or retried.

        Args:
            text: Decoded text frame.

        Returns:
            RelayOutcome: What happened to the frame.
        """
        if not text or not text.strip():
            return RelayOutcome.IGNORED

        if not self.is_open:
            logger.warning(
                f"Dropping frame from user {self.user_id} in state {self.state.value}"
            )
            return RelayOutcome.IGNORED

        ws_messages_received_total.inc()
        if app_settings.LOG_MESSAGE_PAYLOADS:
            logger.debug(f"Received frame from user {self.user_id}: {text}")

        outcome = await self._relay(text)
        ws_messages_relayed_total.labels(outcome=outcome.value).inc()
        return outcome

    async def _relay(self, text: str) -> RelayOutcome:
        try:
            message = RelayMessage.parse(text).stamped(self.user_id)
            target = self._resolve_recipient(message)
            await self._forward(target, message)
        except MalformedPayloadError as ex:
            logger.error(f"Discarding frame from user {self.user_id}: {ex}")
            return RelayOutcome.MALFORMED
        except UnknownRecipientError as ex:
            logger.error(str(ex))
            return RelayOutcome.UNKNOWN_RECIPIENT
        except DeliveryFailureError as ex:
            logger.error(str(ex))
            return RelayOutcome.DELIVERY_FAILED

        logger.debug(
            f"Relayed message from user {self.user_id} to user {target.user_id}"
        )
        return RelayOutcome.DELIVERED

    def _resolve_recipient(self, message: RelayMessage) -> "ConnectionHandler":
        recipient = message.recipient
        target = self.registry.lookup(recipient) if recipient else None
        if target is None:
            raise UnknownRecipientError(
                f"Requested user {message.to_user_id!r} is not on this server",
                user_id=message.to_user_id,
            )
        return target

    async def _forward(
        self, target: "ConnectionHandler", message: RelayMessage
    ) -> None:
        try:
            await target.send_message(message.to_text())
        except TransportError as ex:
            raise DeliveryFailureError(
                f"Failed to deliver message from user {self.user_id} "
                f"to user {target.user_id}: {ex}",
                user_id=target.user_id,
            ) from ex

    async def on_close(self, close_code: int | None = None) -> None:
        """
        Unregister this connection.

        Only the registry entry that still points at this handler is
        removed, so closing a session that was superseded by a reconnect
        leaves the newer session and the online count untouched. Calling
        this more than once is a no-op.

        Args:
            close_code: WebSocket close code, if the transport reported one.
        """
        if self.state is ConnectionState.CLOSED:
            logger.debug(f"Connection of user {self.user_id} already closed")
            return

        self.state = ConnectionState.CLOSED
        was_present, online = self.registry.unregister_and_count(
            self.user_id, self
        )
        ws_connections_active.set(online)

        if was_present:
            logger.info(
                f"User {self.user_id} disconnected with code {close_code}, "
                f"online users: {online}"
            )
        else:
            logger.info(
                f"Superseded session of user {self.user_id} closed with code "
                f"{close_code}, online users: {online}"
            )

    async def on_error(self, error: BaseException) -> None:
        """
        Log a transport fault.

        Cleanup is left to the on_close call the transport makes afterwards.

        Args:
            error: The fault reported by the transport.
        """
        logger.error(
            f"Transport error for user {self.user_id}: "
            f"{type(error).__name__}: {error}"
        )

    async def send_message(self, text: str) -> None:
        """
        Send one text frame to this connection's client.

        Args:
            text: Frame payload.

        Raises:
            TransportError: If the connection is closed or the frame
                cannot be written.
        """
        if self.transport is None or self.state is ConnectionState.CLOSED:
            raise TransportError(
                f"Connection of user {self.user_id} is not open",
                user_id=self.user_id,
            )
        async with self._send_lock:
            await self.transport.send_text(text)


async def send_to(registry: SessionRegistry, user_id: str, message: str) -> bool:
    """
    Push a server-initiated message to one online user.

    Args:
        registry: Registry to look the user up in.
        user_id: Recipient user id.
        message: Text frame to send as-is.

    Returns:
        bool: True if the frame was written, False if the user is not
        online or the send failed. Never raises.
    """
    logger.info(f"Pushing message to user {user_id}")
    target = registry.lookup(user_id) if user_id and user_id.strip() else None
    if target is None:
        ws_push_total.labels(outcome="offline").inc()
        logger.error(f"User {user_id} is not online")
        return False

    try:
        await target.send_message(message)
    except TransportError as ex:
        ws_push_total.labels(outcome="failed").inc()
        logger.error(f"Failed to push message to user {user_id}: {ex}")
        return False

    ws_push_total.labels(outcome="delivered").inc()
    return True
