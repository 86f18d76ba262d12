# safehome/realtime/protocol.py
"""
Протокол сообщений постоянного соединения.

Кадр клиента: {"event": str, "data": dict, "ackId"?: str|int}.
Подтверждение: {"event": "ack", "ackId": ..., "data": {"ok": true} | {"error": msg}}.
"""

from __future__ import annotations

import json
from typing import Any, Optional
from uuid import UUID

from safehome.common.constants import SocketEvent, UserRole
from safehome.common.exceptions import SafeHomeError, Unauthorized, ValidationError
from safehome.common.logger import log_error
from safehome.core.ingestion.service import IngestionService
from safehome.realtime.hub import Connection, FanoutHub

_POINT_FIELDS = ("lat", "lng", "accuracy", "speed", "heading", "ts")


class SocketSession:
    """Обработчик сообщений одного соединения."""

    def __init__(self, hub: FanoutHub, ingestion: IngestionService, connection: Connection) -> None:
        self._hub = hub
        self._ingestion = ingestion
        self._conn = connection

    async def handle_text(self, text: str) -> None:
        """Разбирает текстовый кадр и отправляет ответ, если он нужен."""
        try:
            frame = json.loads(text)
        except json.JSONDecodeError:
            await self._send({"event": SocketEvent.ERROR.value, "data": {"error": "Malformed message"}})
            return

        response = await self.handle_frame(frame)
        if response is not None:
            await self._send(response)

    async def handle_frame(self, frame: Any) -> Optional[dict[str, Any]]:
        """
        Обрабатывает кадр и возвращает ответ.

        Returns:
            Кадр ack при наличии ackId; кадр error при ошибке без ackId;
            None при успехе без ackId
        """
        if not isinstance(frame, dict):
            return {"event": SocketEvent.ERROR.value, "data": {"error": "Malformed message"}}

        ack_id = frame.get("ackId")
        event = frame.get("event")
        data = frame.get("data") or {}

        try:
            if event == SocketEvent.LOCATION_UPDATE.value:
                await self._on_location_update(data)
            elif event == SocketEvent.PARENT_SUBSCRIBE.value:
                await self._on_parent_subscribe(data)
            else:
                raise ValidationError(f"Unknown event: {event}")
            result: dict[str, Any] = {"ok": True}
        except SafeHomeError as e:
            result = {"error": e.message}
        except Exception as e:
            await log_error(
                f"Ошибка обработки события {event} соединения {self._conn.connection_id}: {e}",
                extra={"user_id": str(self._conn.user_id), "event": event},
                exc_info=True,
            )
            result = {"error": "Internal server error"}

        if ack_id is not None:
            return {"event": SocketEvent.ACK.value, "ackId": ack_id, "data": result}
        if "error" in result:
            return {"event": SocketEvent.ERROR.value, "data": result}
        return None

    async def _on_location_update(self, data: Any) -> None:
        if self._conn.role != UserRole.CHILD:
            raise Unauthorized("Only children can send location")
        if not isinstance(data, dict):
            raise ValidationError("Location payload must be an object")
        if str(data.get("userId")) != str(self._conn.user_id):
            raise Unauthorized("User mismatch")
        if data.get("ts") is None:
            raise ValidationError("ts is required")

        point = {key: data[key] for key in _POINT_FIELDS if key in data}
        await self._ingestion.submit_ping(self._conn.user_id, point)

    async def _on_parent_subscribe(self, data: Any) -> None:
        if self._conn.role != UserRole.PARENT:
            raise Unauthorized("Only parents can subscribe")
        raw_child_id = data.get("childId") if isinstance(data, dict) else None
        try:
            child_id = UUID(str(raw_child_id))
        except ValueError:
            raise ValidationError("Invalid childId")

        await self._hub.subscribe(self._conn, child_id)

    async def _send(self, message: dict[str, Any]) -> None:
        await self._conn.websocket.send_json(message)
