from pydantic import BaseModel, Field


class OnlineResponse(BaseModel):
    """
    Snapshot of online users.

    Attributes:
        count: Number of distinct users currently online.
        user_ids: User ids currently registered.
    """

    count: int
    user_ids: list[str] = []


class PushRequest(BaseModel):
    """Body of a server-initiated push to one user."""

    message: str = Field(min_length=1)


class PushResponse(BaseModel):
    """Result of a server-initiated push."""

    user_id: str
    delivered: bool


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    online: int
