"""WebSocket endpoint for real-time project and application events.

The handshake carries the access token either as ``?token=`` or as an
``Authorization: Bearer`` header. The caller's channels are fixed at connect
time from their resolved scope; clients only listen, apart from ``ping``.
"""

from typing import Annotated

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from src.nexus_projects.api.dependencies import IdentityResolverDep, authenticate
from src.nexus_projects.core.exceptions import Unauthorized
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.core.realtime import (
    department_channel,
    faculty_applications_channel,
    get_registry,
    tenant_channel,
    user_channel,
)
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor

logger = get_logger(__name__)

router = APIRouter(tags=["realtime"])


def channels_for(actor: Actor) -> list[str]:
    """Channels a connection joins for its lifetime."""
    channels = [user_channel(actor.id)]
    if actor.tenant_id:
        channels.append(tenant_channel(actor.tenant_id))
        if actor.department:
            channels.append(department_channel(actor.tenant_id, actor.department))
    if actor.is_faculty:
        channels.append(faculty_applications_channel(actor.id))
    return channels


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    resolver: IdentityResolverDep,
    token: Annotated[str | None, Query(description="Access token")] = None,
) -> None:
    authorization = f"Bearer {token}" if token else websocket.headers.get("authorization")
    try:
        actor = await authenticate(authorization, resolver)
    except Unauthorized as e:
        logger.info("Realtime handshake rejected", reason=e.reason)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unauthorized")
        return

    await websocket.accept()
    registry = get_registry()
    connection = await registry.register(
        websocket,
        actor.id,
        channels_for(actor),
        sees_all=policies.sees_all_moderation_states(actor),
    )
    if connection is None:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Too many connections"
        )
        return

    reason = "client_disconnected"
    try:
        await websocket.send_json({"type": "connected", "channels": sorted(connection.channels)})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect as e:
        logger.debug("Realtime client disconnected", user_id=actor.id, code=e.code)
    except Exception as e:
        reason = "error"
        logger.warning("Realtime connection failed", user_id=actor.id, error=str(e))
    finally:
        await registry.unregister(connection, reason=reason)
