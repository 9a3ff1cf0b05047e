"""
File: app/core/middleware.py
Description: 中间件配置与实现

本模块负责：
1. RequestLogMiddleware：
   - 生成 UUID v7 request_id 并绑定到 Loguru 上下文
   - 记录访问日志 (5xx 使用 WARNING 级别)
   - 添加 X-Request-ID 响应头
2. register_middlewares：统一注册 CORS、RequestLogMiddleware

Author: jinmozhe
Created: 2026-10-12
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from uuid6 import uuid7

from app.core.config import settings
from app.core.logging import logger

# 跳过访问日志的路径（健康检查等高频低价值请求）
SKIP_LOG_PATHS: frozenset[str] = frozenset({"/health", "/favicon.ico"})


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    全局请求日志中间件。
    在 with 块内，Router/Service/Repository 产生的日志都会携带 request_id。
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = str(uuid7())
        request.state.request_id = request_id

        with logger.contextualize(request_id=request_id):
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
            except Exception as exc:
                # 异常处理器未能接住的异常 (理论上不会发生)
                logger.bind(
                    method=request.method,
                    path=request.url.path,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                ).opt(exception=exc).error("Request failed with unhandled exception")
                raise

            response.headers["X-Request-ID"] = request_id

            if request.url.path not in SKIP_LOG_PATHS:
                access_log = logger.bind(
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    client_ip=request.client.host if request.client else "unknown",
                )
                if response.status_code >= 500:
                    access_log.warning("Request finished with server error")
                else:
                    access_log.info("Request finished")

            return response


def register_middlewares(app: FastAPI) -> None:
    """
    统一注册所有中间件。
    后注册的中间件先执行 (洋葱模型)。
    """
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["*"],
        )

    app.add_middleware(RequestLogMiddleware)
