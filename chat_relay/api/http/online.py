"""Administrative endpoints for online users and server-initiated pushes."""

from fastapi import APIRouter, Response, status

from chat_relay.dependencies import RegistryDep
from chat_relay.handlers.connection_handler import send_to
from chat_relay.schemas.response import OnlineResponse, PushRequest, PushResponse

router = APIRouter(prefix="/online", tags=["online"])


@router.get(
    "",
    response_model=OnlineResponse,
    summary="Online users",
)
async def get_online(registry: RegistryDep) -> OnlineResponse:
    """
    Report how many distinct users are connected to this server.

    Returns:
        OnlineResponse: Online count and the connected user ids.
    """
    return OnlineResponse(
        count=registry.current_count(), user_ids=registry.online_user_ids()
    )


@router.post(
    "/{user_id}/messages",
    response_model=PushResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": PushResponse}},
    summary="Push a message to one online user",
)
async def push_message(
    user_id: str, body: PushRequest, registry: RegistryDep, response: Response
) -> PushResponse:
    """
    Send a server-initiated text frame to one connected user.

    The message is written as-is, without the relay envelope. Returns 404
    when the user is not online on this server or the frame could not be
    written.
    """
    delivered = await send_to(registry, user_id, body.message)
    if not delivered:
        response.status_code = status.HTTP_404_NOT_FOUND

    return PushResponse(user_id=user_id, delivered=delivered)
