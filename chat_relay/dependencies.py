"""
Dependency injection configuration for FastAPI.

The SessionRegistry is created once by the application factory and stored
on ``app.state``. HTTP routes receive it through FastAPI's Depends() system
instead of importing a module-level instance, which keeps every app (and
every test app) isolated.

Example:
    ```python
    from fastapi import APIRouter
    from chat_relay.dependencies import RegistryDep

    router = APIRouter()

    @router.get("/online/count")
    async def online_count(registry: RegistryDep) -> int:
        return registry.current_count()
    ```
"""

from typing import Annotated

from fastapi import Depends, Request

from chat_relay.managers.session_registry import SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    """
    Get the registry owned by the running application.

    Args:
        request: Incoming HTTP request.

    Returns:
        SessionRegistry: The application's registry.
    """
    return request.app.state.session_registry


RegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
