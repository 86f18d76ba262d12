# safehome/api/ws.py
"""
Постоянное соединение /ws.

Рукопожатие аутентифицируется до accept: параметр token,
затем заголовок Authorization, затем cookie.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from safehome.api.container import ServiceContainer
from safehome.common.exceptions import Unauthenticated
from safehome.common.logger import log_error, log_info, log_warning
from safehome.common.constants import TypeMsg
from safehome.realtime.protocol import SocketSession

router = APIRouter()

WS_UNAUTHENTICATED_CODE = 4401


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str | None = Query(default=None),
) -> None:
    """
    Входящие кадры:
    - {"event": "location:update", "data": {...}, "ackId": ...} (ребёнок)
    - {"event": "parent:subscribe", "data": {"childId": ...}, "ackId": ...} (родитель)
    """
    container: ServiceContainer = websocket.app.state.container

    try:
        user = await container.auth.authenticate_handshake(
            token,
            websocket.headers.get("authorization"),
            websocket.cookies,
        )
    except Unauthenticated:
        await log_warning("Рукопожатие без валидного токена отклонено")
        await websocket.close(code=WS_UNAUTHENTICATED_CODE)
        return

    conn = await container.hub.connect(websocket, user)
    session = SocketSession(container.hub, container.ingestion, conn)

    try:
        while True:
            text = await websocket.receive_text()
            await session.handle_text(text)
    except WebSocketDisconnect:
        await log_info(f"Клиент {conn.user_id} отключился", type_msg=TypeMsg.DEBUG)
    except Exception as e:
        await log_error(
            f"Соединение {conn.connection_id} прервано ошибкой: {e}",
            extra={"user_id": str(conn.user_id)},
            exc_info=True,
        )
    finally:
        await container.hub.disconnect(conn.connection_id)
