"""
File: tests/conftest.py
Description: Pytest 全局 Fixtures 配置 (Async + 独立测试库)

说明：
1. 每个测试使用独立的 SQLite 文件库 (sqlite+aiosqlite)，通过同一个 Database 网关访问
   设置 TEST_DATABASE_URL 可改为指向 PostgreSQL 测试库 (postgresql+asyncpg://...)
2. 导入 app 之前写入数据库环境变量，避免 Settings 因缺少 POSTGRES_* 启动失败
3. HTTP 测试通过 dependency_overrides 注入测试库，不触发 lifespan

Author: jinmozhe
Created: 2026-10-12
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

# ------------------------------------------------------------------------------
# 1. 环境配置覆写 (必须在导入 app 之前)
# ------------------------------------------------------------------------------
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///./registro_ine_test.db")
os.environ.setdefault("ENVIRONMENT", "local")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from app.api.deps import get_database
from app.db.models import CredencialIne, Direccion, Persona
from app.db.session import Database
from app.main import app

# ------------------------------------------------------------------------------
# 2. 全局 Fixtures
# ------------------------------------------------------------------------------


def _test_database_url(tmp_path: Path) -> str:
    return os.environ.get("TEST_DATABASE_URL") or (
        f"sqlite+aiosqlite:///{tmp_path / 'registro_ine.db'}"
    )


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """
    测试专用数据库网关 (Function 级别)，每个测试前重建表结构。
    """
    db = Database(_test_database_url(tmp_path), pool_size=5, pool_timeout=5)

    await db.drop_schema()
    await db.create_schema()

    yield db

    await db.drop_schema()
    await db.dispose()


@pytest_asyncio.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """
    获取异步 HTTP 客户端。
    """
    app.dependency_overrides[get_database] = lambda: database

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"  # type: ignore
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """
    登记请求体工厂，默认值即 "Ana Ruiz Lopez" 场景。
    """

    def _make(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "nombre": "Ana",
            "apellido_paterno": "Ruiz",
            "apellido_materno": "Lopez",
            "sexo": "H",
            "curp": "RUAL900101HDFXYZ01",
            "clave_elector": "RUAL900101H100",
            "anio_emision": 2020,
            "vigencia": 2030,
            "direccion_completa": "Calle 1",
            "estado": "CDMX",
            "municipio": "Benito Juarez",
            "seccion": "001",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def table_counts(
    database: Database,
) -> Callable[[int | None], Awaitable[dict[str, int]]]:
    """
    统计三张表的行数 (可按 persona_id 过滤)。
    """

    async def _counts(persona_id: int | None = None) -> dict[str, int]:
        counts: dict[str, int] = {}
        async with database.session() as session:
            for model in (Persona, Direccion, CredencialIne):
                stmt = select(func.count()).select_from(model)
                if persona_id is not None:
                    column = model.id if model is Persona else model.persona_id
                    stmt = stmt.where(column == persona_id)
                counts[model.__tablename__] = (await session.execute(stmt)).scalar_one()
        return counts

    return _counts
