#!/usr/bin/env python3
# main.py
"""
Главная точка входа SafeHome.
Запускает API (с хабом и воркером очистки) или разовую очистку геолокации.
"""

from __future__ import annotations

import asyncio
import sys

from safehome.config import settings
from safehome.common.logger import setup_logging, log_info, log_error
from safehome.common.constants import TypeMsg
from safehome.infra.database import init_db, close_db


async def run_api() -> None:
    """Запускает HTTP API и постоянное соединение /ws."""
    import uvicorn

    await log_info(
        f"Запуск API на {settings.deployment.API_HOST}:{settings.deployment.API_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "safehome.api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        reload=False,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_retention_cleanup() -> None:
    """Разовая очистка пингов старше срока хранения."""
    from safehome.api.container import build_container

    db = await init_db()
    try:
        container = build_container(db, settings)
        result = await container.retention.run_cleanup()
        await log_info(
            f"Очистка завершена: удалено {result.deleted_count}, срок {result.retention_days} дн.",
            type_msg=TypeMsg.INFO,
        )
    finally:
        await close_db()


async def main(mode: str) -> None:
    setup_logging()
    await log_info(f"SafeHome v{settings.system.VERSION}, режим: {mode}", type_msg=TypeMsg.INFO)

    try:
        if mode == "api":
            await run_api()
        elif mode == "retention_cleanup":
            await run_retention_cleanup()
        else:
            await log_error(f"Неизвестный режим: {mode}")
    except KeyboardInterrupt:
        await log_info("Получен сигнал остановки (Ctrl+C)", type_msg=TypeMsg.INFO)
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}", exc_info=True)
        raise


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
SafeHome - семейный обмен геолокацией

Использование:
    python main.py [mode]

Режимы:
    api                    - HTTP API + /ws + воркер очистки (по умолчанию)
    retention_cleanup      - разовая очистка старых пингов
    """)


if __name__ == "__main__":
    mode = "api"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in ("api", "retention_cleanup"):
            mode = arg
        else:
            print(f"Неизвестный режим: {arg}")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        pass
