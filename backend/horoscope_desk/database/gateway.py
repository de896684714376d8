"""
Horoscope Desk Backend: Dialect-Translating Data Gateway
=========================================================

What:  One `execute(sql, params)` entry point for every service, whichever
       database backend the process was started with.
How:   The backend is chosen once, when the Gateway is constructed. The
       async SQLAlchemy engine behind it is created lazily on the first
       execute() call and reused for the life of the process.
Who:   Constructed once in the app lifespan (main.py) and injected into
       route handlers via `get_gateway` (database/__init__.py).

Backends:
    ┌──────────┬─────────────────────────────┬────────────────────────────┐
    │ Backend  │ Engine                      │ Before each statement      │
    ├──────────┼─────────────────────────────┼────────────────────────────┤
    │ mysql    │ mysql+aiomysql, pool of 10  │ nothing                    │
    │ sqlite   │ sqlite+aiosqlite, 1 handle  │ dialect.translate_for_...  │
    └──────────┴─────────────────────────────┴────────────────────────────┘

Result contract:
    Read statements  → Rows(records=[{column: value}, ...])
    Write statements → WriteResult(inserted_id, affected_row_count)

    Both unpack as a 2-tuple whose second element is always None, so
    `rows, _ = await gateway.execute(...)` works for either shape.

Embedded cold start (first execute only):
    1. Resolve the file path and create parent directories
    2. Apply schema.sql (every statement is IF NOT EXISTS)
    3. If `users` is empty, insert admin@local with the default password

Error translation:
    Uniqueness and foreign-key violations are raised as DuplicateKeyError /
    ReferenceNotFoundError carrying the backend name and native message.
    Everything else (including connection failures during lazy init)
    propagates to the caller unchanged. Nothing is retried here.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import aiofiles
from sqlalchemy import event, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from horoscope_desk.config import Settings, settings as default_settings
from horoscope_desk.database.dialect import bind_positional, is_read_statement, translate_for_sqlite
from horoscope_desk.exceptions import DuplicateKeyError, ReferenceNotFoundError
from horoscope_desk.services.passwords import hash_password

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

DEFAULT_ADMIN_EMAIL = "admin@local"
DEFAULT_ADMIN_NAME = "Admin"

# MySQL server error numbers
ER_DUP_ENTRY = 1062
ER_NO_REFERENCED_ROW_2 = 1452

_INSERT_RE = re.compile(r"^\s*(INSERT|REPLACE)\b", re.IGNORECASE)


class Backend(str, Enum):
    """The two interchangeable storage implementations."""

    MYSQL = "mysql"
    SQLITE = "sqlite"


def select_backend(config: Settings) -> Backend:
    """Explicit DATABASE_TYPE=sqlite or any SQLITE_PATH selects SQLite; else MySQL."""
    return Backend.SQLITE if config.use_sqlite else Backend.MYSQL


# ══════════════════════════════════════════════════════════════════════════
# Result Types
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Rows:
    """Result of a read statement. `records` may be empty."""

    records: List[Dict[str, Any]] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        yield self.records
        yield None

    def first(self) -> Optional[Dict[str, Any]]:
        return self.records[0] if self.records else None


@dataclass(frozen=True)
class WriteResult:
    """Result of an INSERT/UPDATE/DELETE."""

    inserted_id: Optional[int]
    affected_row_count: int

    def __iter__(self) -> Iterator[Any]:
        yield self
        yield None


Result = Union[Rows, WriteResult]


# ══════════════════════════════════════════════════════════════════════════
# Gateway
# ══════════════════════════════════════════════════════════════════════════


class Gateway:
    """
    Owns the process-wide connection pool (MySQL) or file handle (SQLite).

    Args:
        config:  Settings to read connection parameters from
        backend: Override the backend chosen from `config` (tests)
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        backend: Optional[Backend] = None,
        schema_path: Path = SCHEMA_PATH,
    ):
        self.config = config or default_settings
        self.backend = backend or select_backend(self.config)
        self._engine: Optional[AsyncEngine] = None
        self._init_lock = asyncio.Lock()
        self.sqlite_path: Optional[Path] = None
        self.schema_path = schema_path
        logger.info("Database backend selected: %s", self.backend.value)

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    # ── Public API ────────────────────────────────────────────────────────

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> Result:
        """
        Run one statement and return a Rows or WriteResult.

        Args:
            sql:    MySQL-flavoured SQL with `?` positional placeholders
            params: Positional parameter values

        Raises:
            DuplicateKeyError:      a uniqueness constraint was violated
            ReferenceNotFoundError: a foreign key target is missing
            DialectError:           SQLite backend, untranslatable statement
            sqlalchemy.exc.SQLAlchemyError: anything else, unchanged
        """
        engine = await self._get_engine()

        if self.backend is Backend.SQLITE:
            sql = translate_for_sqlite(sql)
            logger.debug("Translated SQL: %s", sql)

        bound_sql, bound_params = bind_positional(sql, list(params))
        is_read = is_read_statement(sql)

        try:
            async with engine.begin() as conn:
                result = await conn.execute(text(bound_sql), bound_params)
                if is_read:
                    return Rows(records=[dict(row) for row in result.mappings().all()])
                inserted_id = result.lastrowid if _INSERT_RE.match(sql) else None
                return WriteResult(
                    inserted_id=inserted_id or None,
                    affected_row_count=result.rowcount,
                )
        except IntegrityError as exc:
            translated = self._translate_integrity_error(exc)
            if translated is None:
                raise
            raise translated from exc

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        rows, _ = await self.execute(sql, params)
        return rows

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows, _ = await self.execute(sql, params)
        return rows[0] if rows else None

    async def ping(self) -> bool:
        """Lightweight connectivity check for /health."""
        await self.execute("SELECT 1 AS ok")
        return True

    async def dispose(self) -> None:
        """Close the pool / file handle. Called at application shutdown."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed (%s)", self.backend.value)

    # ── Lazy Initialization ───────────────────────────────────────────────

    async def _get_engine(self) -> AsyncEngine:
        if self._engine is not None:
            return self._engine
        async with self._init_lock:
            if self._engine is None:
                if self.backend is Backend.SQLITE:
                    self._engine = await self._open_sqlite()
                else:
                    self._engine = self._open_mysql()
        return self._engine

    def _open_mysql(self) -> AsyncEngine:
        cfg = self.config
        url = URL.create(
            "mysql+aiomysql",
            username=cfg.mysql_user,
            password=cfg.mysql_password or None,
            host=cfg.mysql_host,
            port=cfg.mysql_port,
            database=cfg.mysql_database,
        )
        logger.info(
            "Connecting to MySQL at %s:%d/%s (pool=%d)",
            cfg.mysql_host, cfg.mysql_port, cfg.mysql_database, cfg.db_pool_size,
        )
        return create_async_engine(
            url,
            pool_size=cfg.db_pool_size,
            max_overflow=0,       # hard cap at pool_size
            pool_timeout=None,    # waiters queue without limit
            pool_pre_ping=True,
            pool_recycle=3600,
            echo=cfg.log_level == "DEBUG",
        )

    async def _open_sqlite(self) -> AsyncEngine:
        path = self.config.resolve_sqlite_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.sqlite_path = path
        logger.info("Opening SQLite database at %s", path)

        # One connection shared by every caller; SQLite serializes writers.
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{path}",
            pool_size=1,
            max_overflow=0,
            pool_timeout=None,
            echo=self.config.log_level == "DEBUG",
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        try:
            async with engine.begin() as conn:
                await self._apply_schema(conn)
                await self._seed_admin(conn)
        except Exception:
            await engine.dispose()
            raise
        return engine

    async def _apply_schema(self, conn: AsyncConnection) -> None:
        if not self.schema_path.exists():
            logger.warning("Schema script %s not found; skipping bootstrap", self.schema_path)
            return
        async with aiofiles.open(self.schema_path, "r", encoding="utf-8") as f:
            script = await f.read()
        statements = split_sql_script(script)
        for statement in statements:
            await conn.exec_driver_sql(statement)
        logger.info("SQLite schema applied (%d statements)", len(statements))

    async def _seed_admin(self, conn: AsyncConnection) -> None:
        result = await conn.exec_driver_sql("SELECT COUNT(*) FROM users")
        if result.scalar_one() > 0:
            return
        password_hash = await hash_password(self.config.admin_password)
        await conn.exec_driver_sql(
            "INSERT INTO users (email, password_hash, name, role) VALUES (?, ?, ?, 'admin')",
            (DEFAULT_ADMIN_EMAIL, password_hash, DEFAULT_ADMIN_NAME),
        )
        logger.info("Seeded default administrator %s", DEFAULT_ADMIN_EMAIL)

    # ── Error Translation ─────────────────────────────────────────────────

    def _translate_integrity_error(self, exc: IntegrityError) -> Optional[Exception]:
        native = str(exc.orig) if exc.orig is not None else str(exc)
        code, kind = _classify_integrity_error(self.backend, exc.orig)
        if kind == "duplicate":
            logger.info("Duplicate key (%s): %s", self.backend.value, native)
            return DuplicateKeyError(backend=self.backend.value, native_message=native)
        if kind == "reference":
            return ReferenceNotFoundError(backend=self.backend.value, native_message=native)
        logger.warning("Unclassified integrity error (%s, code=%s): %s", self.backend.value, code, native)
        return None


def _classify_integrity_error(backend: Backend, orig: Any) -> Tuple[Optional[int], str]:
    """
    Map a driver exception to ("duplicate" | "reference" | "other").

    MySQL reports numeric error codes in args[0]; SQLite only has text.
    """
    if backend is Backend.MYSQL:
        args = getattr(orig, "args", ()) or ()
        code = args[0] if args and isinstance(args[0], int) else None
        if code == ER_DUP_ENTRY:
            return code, "duplicate"
        if code == ER_NO_REFERENCED_ROW_2:
            return code, "reference"
        return code, "other"

    message = str(orig)
    if message.startswith("UNIQUE constraint failed"):
        return None, "duplicate"
    if message.startswith("FOREIGN KEY constraint failed"):
        return None, "reference"
    return None, "other"


def _strip_sql_comments(statement: str) -> str:
    lines = [line for line in statement.splitlines() if not line.strip().startswith("--")]
    return "\n".join(lines).strip()


def split_sql_script(script: str) -> List[str]:
    """Drop `--` comment lines, then split on `;` into non-empty statements."""
    body = _strip_sql_comments(script)
    return [s.strip() for s in body.split(";") if s.strip()]
