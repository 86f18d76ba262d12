# safehome/worker/base.py
"""
Базовый класс для периодических воркеров.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import List

from safehome.common.constants import TypeMsg
from safehome.common.logger import log_error, log_info


class BaseWorker(ABC):
    """
    Базовый класс фоновых воркеров.
    Выполняет run_once с заданным интервалом в задаче event loop.
    """

    def __init__(self, interval_seconds: float) -> None:
        """
        Инициализирует воркер.

        Args:
            interval_seconds: Пауза между запусками (0 отключает воркер)
        """
        self.interval_seconds = interval_seconds
        self._running = False
        self._tasks: List[asyncio.Task] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя воркера."""
        pass

    @abstractmethod
    async def run_once(self) -> None:
        """Один проход работы воркера."""
        pass

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    async def start(self) -> None:
        """Запускает воркер."""
        if self._running:
            return
        if not self.enabled:
            await log_info(f"Воркер {self.name} отключён (интервал 0)", type_msg=TypeMsg.DEBUG)
            return

        self._running = True
        self._tasks.append(asyncio.create_task(self._loop(), name=f"worker:{self.name}"))
        await log_info(
            f"Воркер {self.name} запущен (интервал {self.interval_seconds} с)",
            type_msg=TypeMsg.INFO,
        )

    async def stop(self) -> None:
        """Останавливает воркер."""
        if not self._running:
            return

        self._running = False

        for task in self._tasks:
            task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        self._tasks.clear()
        await log_info(f"Воркер {self.name} остановлен", type_msg=TypeMsg.INFO)

    async def _loop(self) -> None:
        while self._running:
            await self._run_safely()
            await asyncio.sleep(self.interval_seconds)

    async def _run_safely(self) -> None:
        """Проход воркера; ошибка логируется и не останавливает цикл."""
        try:
            await self.run_once()
        except Exception as e:
            await log_error(f"Ошибка в воркере {self.name}: {e}", exc_info=True)
