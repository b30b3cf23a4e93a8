from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from chat_relay.constants import FROM_USER_ID_FIELD, TO_USER_ID_FIELD
from chat_relay.exceptions import MalformedPayloadError

_record_adapter: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


class RelayMessage(BaseModel):
    """
    Relay record exchanged between clients.

    The inbound JSON object is kept whole in ``record`` so every key the
    client sent is forwarded unchanged, whatever its name. Only the routing
    field is validated.

    Attributes:
        to_user_id: Recipient user id read from ``toUserId``; JSON numbers
            are coerced to text, other non-string values are rejected.
        record: The complete JSON object as sent on the wire.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, frozen=True)

    to_user_id: str | None = None
    record: dict[str, Any]

    @classmethod
    def parse(cls, text: str) -> "RelayMessage":
        """
        Parse a text frame into a relay record.

        Args:
            text: Raw text frame received from a client.

        Returns:
            RelayMessage: The parsed record.

        Raises:
            MalformedPayloadError: If the frame is not a JSON object or
                ``toUserId`` has an unsupported type.
        """
        try:
            record = _record_adapter.validate_json(text)
            return cls(to_user_id=record.get(TO_USER_ID_FIELD), record=record)
        except ValidationError as ex:
            raise MalformedPayloadError(
                f"Invalid relay payload: {ex.error_count()} error(s), "
                f"first: {ex.errors()[0]['msg']}"
            ) from ex

    @property
    def recipient(self) -> str | None:
        """Recipient user id, or None when missing or blank."""
        if self.to_user_id is None or not self.to_user_id.strip():
            return None
        return self.to_user_id

    @property
    def from_user_id(self) -> Any:
        return self.record.get(FROM_USER_ID_FIELD)

    def stamped(self, sender: str) -> "RelayMessage":
        """Return a copy whose fromUserId is forced to sender."""
        return self.model_copy(
            update={"record": {**self.record, FROM_USER_ID_FIELD: sender}}
        )

    def to_text(self) -> str:
        """Serialize the record back to a JSON text frame."""
        return _record_adapter.dump_json(self.record).decode()
