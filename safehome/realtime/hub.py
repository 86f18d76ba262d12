# safehome/realtime/hub.py
"""
Хаб realtime-рассылки.
Управляет аутентифицированными соединениями, комнатами детей и рассылкой.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from fastapi import WebSocket

from safehome.common.constants import SocketEvent, TypeMsg, UserRole, child_room
from safehome.common.exceptions import Unauthorized
from safehome.common.logger import log_info, log_warning
from safehome.core.users.models import User

if TYPE_CHECKING:
    from safehome.core.links.service import LinkRegistry
    from safehome.core.locations.models import LocationPing


@dataclass
class Connection:
    """Информация о соединении."""
    websocket: WebSocket
    user_id: UUID
    role: UserRole
    connection_id: str = field(default_factory=lambda: uuid4().hex)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rooms: set[str] = field(default_factory=set)


class FanoutHub:
    """
    Хаб соединений.

    Поддерживает:
    - Подключение/отключение (членство в комнатах привязано к соединению)
    - Автоматическое вступление ребёнка в свою комнату
    - Подписку родителя с проверкой принятой связи
    - Рассылку пингов в комнату ребёнка
    - Выселение родителя из комнаты при отзыве связи
    """

    def __init__(self, links: "LinkRegistry") -> None:
        self._links = links
        self._running = False

        # connection_id -> Connection
        self._connections: dict[str, Connection] = {}

        # room -> set of connection_ids
        self._rooms: dict[str, set[str]] = {}

        # Для статистики
        self._total_connections: int = 0
        self._total_messages_sent: int = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def start(self) -> None:
        self._running = True
        await log_info("Хаб рассылки запущен", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        """Закрывает все соединения и очищает комнаты."""
        self._running = False
        for conn in list(self._connections.values()):
            await self._close_connection(conn)
        self._connections.clear()
        self._rooms.clear()
        await log_info("Хаб рассылки остановлен", type_msg=TypeMsg.INFO)

    async def connect(self, websocket: WebSocket, user: User) -> Connection:
        """
        Принимает уже аутентифицированное соединение.
        Ребёнок сразу вступает в свою комнату.

        Raises:
            RuntimeError: хаб не запущен
        """
        if not self._running:
            raise RuntimeError("Хаб рассылки не запущен")

        await websocket.accept()

        conn = Connection(websocket=websocket, user_id=user.id, role=user.role)
        self._connections[conn.connection_id] = conn
        self._total_connections += 1

        if conn.role == UserRole.CHILD:
            self._join(conn, child_room(conn.user_id))

        await log_info(
            f"Соединение {conn.connection_id} открыто: {conn.role.value} {conn.user_id}",
            type_msg=TypeMsg.DEBUG,
        )
        return conn

    async def disconnect(self, connection_id: str) -> None:
        """Отключает соединение и немедленно снимает все его членства."""
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return

        for room in list(conn.rooms):
            self._leave(conn, room)

        await log_info(f"Соединение {connection_id} закрыто", type_msg=TypeMsg.DEBUG)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    async def subscribe(self, conn: Connection, child_id: UUID) -> bool:
        """
        Подписывает соединение родителя на комнату ребёнка.
        Связь проверяется в момент подписки.

        Returns:
            True если соединение вступило в комнату, False если оно
            закрылось во время проверки

        Raises:
            Unauthorized: соединение не родительское или связь не принята
        """
        if conn.role != UserRole.PARENT:
            raise Unauthorized("Only parents can subscribe")

        if not await self._links.is_accepted(conn.user_id, child_id):
            raise Unauthorized("Not linked to child")

        # Соединение могло закрыться, пока шла проверка
        if conn.connection_id not in self._connections:
            return False

        self._join(conn, child_room(child_id))
        return True

    async def publish_ping(self, ping: "LocationPing") -> int:
        """Рассылает пинг в комнату ребёнка."""
        message = {"event": SocketEvent.LOCATION_PUSH.value, "data": ping.public_dict()}
        return await self.broadcast_to_room(child_room(ping.child_id), message)

    async def broadcast_to_room(self, room: str, message: dict[str, Any]) -> int:
        """
        Отправляет сообщение всем соединениям комнаты.

        Returns:
            Количество успешно отправленных сообщений
        """
        sent_count = 0
        failed: list[str] = []

        for connection_id in list(self._rooms.get(room, ())):
            conn = self._connections.get(connection_id)
            if conn is None:
                continue
            try:
                await conn.websocket.send_json(message)
                sent_count += 1
                self._total_messages_sent += 1
            except Exception as e:
                await log_warning(f"Отправка в соединение {connection_id} не удалась: {e}")
                failed.append(connection_id)

        for connection_id in failed:
            await self.disconnect(connection_id)

        return sent_count

    async def evict(self, parent_id: UUID, child_id: UUID) -> int:
        """
        Выводит все соединения родителя из комнаты ребёнка.

        Returns:
            Количество выселенных соединений
        """
        room = child_room(child_id)
        evicted = 0
        for connection_id in list(self._rooms.get(room, ())):
            conn = self._connections.get(connection_id)
            if conn is not None and conn.role == UserRole.PARENT and conn.user_id == parent_id:
                self._leave(conn, room)
                evicted += 1
        return evicted

    def room_members(self, room: str) -> set[str]:
        """Получить соединения комнаты."""
        return self._rooms.get(room, set()).copy()

    def get_connection_rooms(self, connection_id: str) -> set[str]:
        conn = self._connections.get(connection_id)
        return conn.rooms.copy() if conn else set()

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "active_connections": len(self._connections),
            "total_rooms": len(self._rooms),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "connections_by_role": self._count_by_role(),
        }

    def _count_by_role(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for conn in self._connections.values():
            counts[conn.role.value] = counts.get(conn.role.value, 0) + 1
        return counts

    def _join(self, conn: Connection, room: str) -> None:
        conn.rooms.add(room)
        self._rooms.setdefault(room, set()).add(conn.connection_id)

    def _leave(self, conn: Connection, room: str) -> None:
        conn.rooms.discard(room)
        members = self._rooms.get(room)
        if members is not None:
            members.discard(conn.connection_id)
            if not members:
                del self._rooms[room]

    async def _close_connection(self, conn: Connection) -> None:
        try:
            await conn.websocket.close()
        except Exception as e:
            await log_warning(f"Не удалось закрыть соединение {conn.connection_id}: {e}")
