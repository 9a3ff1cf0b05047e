"""
File: app/core/exceptions.py
Description: 业务异常类与全局异常处理器

本模块负责：
1. 业务异常基类（AppException）接受 BaseErrorCode 枚举，携带结构化错误类型
2. 全局异常处理器按错误类型 (code / http_status) 映射为 HTTP 响应，不解析异常文本
3. 数据库异常 (SQLAlchemyError) 统一映射为 system.db_error (500)
4. 内部诊断信息 (detail) 仅在开发诊断模式 (settings.is_debug) 下返回给客户端

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.error_code import BaseErrorCode, SystemErrorCode
from app.core.logging import logger
from app.core.response import ResponseModel

# ------------------------------------------------------------------------------
# 1. 自定义业务异常类
# ------------------------------------------------------------------------------


class AppException(Exception):
    """
    应用基础异常类。

    用法示例:
        raise AppException(PersonaErrorCode.NOT_FOUND)
        raise AppException(PersonaErrorCode.INVALID_ID, message="ID inválido: -1")
        raise AppException(PersonaErrorCode.QUERY_FAILED, detail=str(exc)) from exc
    """

    def __init__(
        self,
        error: BaseErrorCode,
        message: str = "",
        data: Any = None,
        detail: str | None = None,
    ):
        # 自动从枚举中解构: (HTTP状态, 业务码, 默认文案)
        self.error = error
        self.http_status = error.http_status
        self.code = error.code
        self.message = message or error.msg
        self.data = data
        # 内部诊断信息，不直接暴露给客户端
        self.detail = detail
        super().__init__(self.message)


# ------------------------------------------------------------------------------
# 2. 辅助函数
# ------------------------------------------------------------------------------


def _get_request_id(request: Request) -> str:
    """尝试从 request.state 获取 request_id，如果不存在则返回 'unknown'"""
    return str(getattr(request.state, "request_id", "unknown"))


def _with_diagnostics(data: Any, detail: str | None) -> Any:
    """开发诊断模式下把内部错误详情并入 data"""
    if not (settings.is_debug and detail):
        return data
    if data is None:
        return {"detail": detail}
    if isinstance(data, dict):
        return {**data, "detail": detail}
    return data


def _fail_response(
    request_id: str,
    http_status: int,
    code: str,
    message: str,
    data: Any = None,
) -> ORJSONResponse:
    response_model = ResponseModel.fail(
        code=code,
        message=message,
        data=data,
        request_id=request_id,
    )
    return ORJSONResponse(status_code=http_status, content=response_model.model_dump())


# ------------------------------------------------------------------------------
# 3. 全局异常处理器 (Handlers)
# ------------------------------------------------------------------------------


async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
    """
    处理自定义业务异常 (AppException)
    直接映射为定义好的 HTTP 状态码和 Code
    """
    request_id = _get_request_id(request)

    log = logger.bind(
        request_id=request_id,
        code=exc.code,
        http_status=exc.http_status,
        message=exc.message,
    )
    if exc.http_status >= 500:
        log.opt(exception=exc.__cause__ or exc).error("Business exception occurred")
    else:
        log.warning("Business exception occurred")

    return _fail_response(
        request_id,
        exc.http_status,
        exc.code,
        exc.message,
        _with_diagnostics(exc.data, exc.detail),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """
    处理 Pydantic 校验异常 (FastAPI 默认抛出 422)
    映射目标: HTTP 400 Bad Request / Code: system.invalid_params
    """
    request_id = _get_request_id(request)

    errors = exc.errors()
    first_error = errors[0] if errors else {}

    # loc 示例: ('body', 'curp') / ('path', 'persona_id')
    loc = first_error.get("loc", [])
    field_name = str(loc[-1]) if loc else "unknown"
    msg = first_error.get("msg", "Invalid parameter")
    readable_message = f"{field_name}: {msg}"

    logger.bind(request_id=request_id, detail=readable_message).warning(
        "Request validation failed"
    )

    # ctx 中可能包含异常对象，只保留可序列化的字段
    safe_errors = [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]

    return _fail_response(
        request_id,
        SystemErrorCode.INVALID_PARAMS.http_status,
        SystemErrorCode.INVALID_PARAMS.code,
        readable_message,
        {"errors": safe_errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    """
    处理框架层面的 HTTP 异常 (如 404 Not Found, 405 Method Not Allowed)
    """
    request_id = _get_request_id(request)

    code_str = (
        SystemErrorCode.NOT_FOUND.code if exc.status_code == 404 else "system.http_error"
    )

    logger.bind(
        request_id=request_id,
        status_code=exc.status_code,
        detail=str(exc.detail),
    ).warning("Framework HTTP exception occurred")

    return _fail_response(request_id, exc.status_code, code_str, str(exc.detail))


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> ORJSONResponse:
    """
    处理持久化失败 (连接、约束冲突、超时)。
    事务已在 Service 层回滚，这里只负责记录与格式化。
    """
    request_id = _get_request_id(request)

    logger.opt(exception=exc).bind(request_id=request_id).error(
        "Database operation failed"
    )

    return _fail_response(
        request_id,
        SystemErrorCode.DB_ERROR.http_status,
        SystemErrorCode.DB_ERROR.code,
        SystemErrorCode.DB_ERROR.msg,
        _with_diagnostics(None, str(exc)),
    )


async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """
    处理所有未捕获的异常 (500 Internal Server Error)
    屏蔽内部细节，返回通用系统错误
    """
    request_id = _get_request_id(request)

    logger.opt(exception=exc).bind(request_id=request_id).error(
        "Unhandled system exception occurred"
    )

    return _fail_response(
        request_id,
        SystemErrorCode.INTERNAL_ERROR.http_status,
        SystemErrorCode.INTERNAL_ERROR.code,
        SystemErrorCode.INTERNAL_ERROR.msg,
        _with_diagnostics(None, repr(exc)),
    )


# ------------------------------------------------------------------------------
# 4. 异常处理器注册函数
# ------------------------------------------------------------------------------


def register_exception_handlers(app: FastAPI) -> None:
    """
    统一注册所有异常处理器。
    应在 main.py 中调用。
    """
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)  # type: ignore
    app.add_exception_handler(Exception, general_exception_handler)
