"""
File: app/db/session.py
Description: 数据库网关 (Async SQLAlchemy)

本模块负责：
1. Database: 显式构造、显式注入的数据库网关 (不再使用模块级全局引擎)
2. 有界连接池：池满时调用方排队等待 (pool_timeout)，而不是立即失败
3. session(): 单语句读操作使用的会话 (不显式开启事务)
4. transaction(): 多语句写操作使用的事务会话 (成功提交 / 失败回滚)
5. 无论成功、业务异常还是基础设施异常 (包括 commit/rollback 本身失败)，连接都会归还连接池
6. 集成 orjson 用于 JSON 字段序列化
7. 启动探活 (ping)、建表 (create_schema)、关闭 (dispose)

Author: jinmozhe
Created: 2026-10-12
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import orjson
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from app.core.logging import logger
from app.db.models import Base

if TYPE_CHECKING:
    from app.core.config import Settings


def _orjson_serializer(obj: Any) -> str:
    """orjson 返回 bytes，SQLAlchemy 需要 str，因此需 decode"""
    return orjson.dumps(obj).decode("utf-8")


def _orjson_deserializer(obj: str | bytes) -> Any:
    return orjson.loads(obj)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """
    SQLite 默认不启用外键约束，ON DELETE CASCADE 需要显式打开。
    仅用于测试库，生产环境为 PostgreSQL。
    """
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


class Database:
    """
    数据库网关。

    一个进程只构造一个实例 (在 lifespan 中)，通过依赖注入传递给 Service。
    每个业务操作通过 session() / transaction() 恰好占用一个连接。
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: float = 30,
        pool_recycle: int = 1800,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=pool_pre_ping,
            json_serializer=_orjson_serializer,
            json_deserializer=_orjson_deserializer,
        )

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: 提交后仍可读取已构造记录的属性 (Async 模式不支持隐式 IO)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Database":
        """根据全局配置构造网关"""
        return cls(
            str(settings.SQLALCHEMY_DATABASE_URI),
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
            echo=settings.DEBUG,
        )

    # --------------------------------------------------------------------------
    # 会话 / 事务
    # --------------------------------------------------------------------------

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        读操作会话。
        连接在第一条语句执行时才从连接池取出，退出时归还。
        """
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        写操作事务会话。

        - 正常退出: COMMIT
        - 任何异常: ROLLBACK 后原样抛出
        - 连接总是归还连接池 (session.close 位于 finally 中)
        """
        async with self.session_factory() as session, session.begin():
            yield session

    # --------------------------------------------------------------------------
    # 生命周期
    # --------------------------------------------------------------------------

    async def ping(self) -> None:
        """启动探活：连接失败时直接抛出，由 lifespan 终止启动"""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.bind(dialect=self.engine.dialect.name).info("Database connection ok")

    async def create_schema(self) -> None:
        """按 ORM 元数据建表 (已存在的表跳过)"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """
        关闭连接池，释放所有连接。
        应在应用 shutdown 阶段调用。
        """
        await self.engine.dispose()
        logger.info("Database pool disposed")
