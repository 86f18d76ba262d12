# safehome/realtime/__init__.py
"""
Realtime-рассылка геолокации.

Обеспечивает:
- Аутентифицированные постоянные соединения
- Комнаты детей с подпиской родителей по принятой связи
- Рассылку новых пингов подписчикам
"""

from safehome.realtime.hub import Connection, FanoutHub
from safehome.realtime.protocol import SocketSession

__all__ = ["Connection", "FanoutHub", "SocketSession"]
