# safehome/infra/database.py
"""
Доступ к PostgreSQL через пул asyncpg.

Повторяются только подключение и чтения. Запись выполняется
не более одного раза: после обрыва неизвестно, применилась ли она.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncGenerator, Callable, Optional, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from safehome.common.constants import TypeMsg
from safehome.common.logger import log_error, log_info, log_warning

if TYPE_CHECKING:
    from safehome.config.loader import DatabaseSettings

T = TypeVar("T")

SCHEMA_LOCK_ID = 727274663

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Повторяет корутину при обрыве соединения с линейной задержкой.

    Args:
        max_attempts: Сколько всего попыток
        delay: Базовая задержка, умножается на номер попытки
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt >= max_attempts:
                        await log_error(f"PostgreSQL недоступен после {max_attempts} попыток: {e}")
                        raise
                    await log_warning(f"Обрыв соединения с PostgreSQL ({attempt}/{max_attempts}): {e}")
                    await asyncio.sleep(delay * attempt)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator


class DatabaseManager:
    """Пул соединений и базовые операции над ним."""

    def __init__(self, config: Optional["DatabaseSettings"] = None) -> None:
        self._config = config
        self._pool: Pool | None = None

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error(max_attempts=3, delay=1.0)
    async def connect(self, dsn: str | None = None, **pool_options: Any) -> None:
        """
        Открывает пул. Без dsn берёт строку подключения и размеры пула
        из настроек, переданных в конструктор.
        """
        if self._pool is not None:
            return

        if dsn is None:
            if self._config is None:
                raise RuntimeError("Не заданы ни DSN, ни настройки БД")
            dsn = self._config.dsn
            pool_options = {
                "min_size": self._config.DB_MIN_POOL_SIZE,
                "max_size": self._config.DB_MAX_POOL_SIZE,
                "command_timeout": self._config.DB_COMMAND_TIMEOUT,
                **pool_options,
            }

        self._pool = await asyncpg.create_pool(dsn=dsn, **pool_options)
        await log_info("Пул PostgreSQL открыт", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        await log_info("Пул PostgreSQL закрыт", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """Соединение внутри транзакции: commit при выходе, rollback при ошибке."""
        async with self.pool.acquire() as connection:
            async with connection.transaction():
                yield connection

    async def execute(self, query: str, *args: Any) -> str:
        """Запись без повторов. Возвращает статус вида "DELETE 3"."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @retry_on_connection_error()
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @retry_on_connection_error()
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @retry_on_connection_error()
    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Проверка PostgreSQL не прошла: {e}")
            return False

    async def apply_schema(self, schema_path: Path) -> None:
        """
        Применяет SQL-схему под advisory lock, чтобы несколько процессов
        при одновременном старте не создавали таблицы наперегонки.
        """
        if not schema_path.exists():
            await log_error(f"Файл схемы БД не найден: {schema_path}")
            return

        schema_sql = schema_path.read_text(encoding="utf-8")
        async with self.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
            await conn.execute(schema_sql)

        await log_info(f"Схема БД применена: {schema_path.name}", type_msg=TypeMsg.INFO)


def affected_rows(status: str) -> int:
    """Число строк из статуса asyncpg ("DELETE 3" -> 3)."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


_db: DatabaseManager | None = None


def get_db() -> DatabaseManager:
    """Менеджер БД процесса."""
    global _db
    if _db is None:
        from safehome.config import settings

        _db = DatabaseManager(settings.database)
    return _db


async def init_db() -> DatabaseManager:
    """Открывает пул процесса и применяет migrations/init.sql."""
    from safehome.config.loader import get_project_root

    db = get_db()
    await db.connect()
    await db.apply_schema(get_project_root() / "migrations" / "init.sql")
    return db


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.disconnect()
        _db = None
