"""
File: app/main.py
Description: FastAPI 应用入口与工厂函数

本模块负责：
1. 创建 FastAPI 应用实例 (设置默认响应类为 ORJSONResponse)
2. 管理应用生命周期 (lifespan):
   - 启动: 初始化日志、构造数据库网关、连接探活、按配置建表
   - 关闭: 释放连接池
3. 组装全局组件：中间件、异常处理器、路由
4. 提供健康检查接口 (/health) 与根路由 (/)

Author: jinmozhe
Created: 2026-10-12
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from app.api_router import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import logger, setup_logging
from app.core.middleware import register_middlewares
from app.core.response import ResponseModel
from app.db.session import Database


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    应用生命周期管理器。
    数据库不可达时 ping() 抛出异常，进程启动失败。
    """
    setup_logging()

    database = Database.from_settings(settings)
    await database.ping()
    if settings.DB_CREATE_SCHEMA:
        await database.create_schema()

    app.state.database = database
    logger.bind(port=settings.PORT, environment=settings.ENVIRONMENT).info(
        "Application started"
    )

    try:
        yield
    finally:
        await database.dispose()


def create_app() -> FastAPI:
    """应用工厂函数"""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # 1. 注册中间件 (CORS, RequestID, Logging)
    register_middlewares(app)

    # 2. 注册异常处理器
    register_exception_handlers(app)

    # 3. 挂载 API 路由
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # 4. 健康检查
    @app.get(
        "/health",
        tags=["health"],
        summary="健康检查",
        response_model=ResponseModel[dict[str, str]],
    )
    async def health_check():
        """用于负载均衡器 / 容器探针"""
        return ResponseModel.ok(data={"status": "ok"})

    # 5. 根路由
    @app.get(
        "/",
        tags=["root"],
        summary="系统入口",
        response_model=ResponseModel[dict[str, str]],
    )
    async def root():
        return ResponseModel.ok(
            message=f"Welcome to {settings.PROJECT_NAME}",
            data={
                "status": "running",
                "docs_url": "/docs",
                "health_url": "/health",
                "api_prefix": f"{settings.API_PREFIX}/personas",
            },
        )

    return app


# 暴露给 Uvicorn 运行的应用实例
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
