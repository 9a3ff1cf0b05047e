"""
File: app/core/error_code.py
Description: 全局错误码基类与系统级错误定义

定义结构 Tuple(http_status, code, message):
1. http_status: HTTP 响应状态码 (4xx/5xx)
2. code: 字符串业务码 (格式: domain.reason)，即响应体中的错误标识
3. message: 默认的人类可读错误消息 (面向墨西哥用户，使用西班牙语)

异常处理器只根据 code / http_status 做映射，不再解析异常文本。

Author: jinmozhe
Created: 2026-10-12
"""

from enum import Enum

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class BaseErrorCode(Enum):
    """
    错误码枚举基类
    所有业务领域的错误码 Enum 必须继承此类。

    Value Tuple Definition:
    (http_status, code, msg)
    """

    @property
    def http_status(self) -> int:
        """获取映射的 HTTP 状态码"""
        return self.value[0]

    @property
    def code(self) -> str:
        """获取业务错误标识 (domain.reason)"""
        return self.value[1]

    @property
    def msg(self) -> str:
        """获取默认错误描述信息"""
        return self.value[2]


class SystemErrorCode(BaseErrorCode):
    """
    系统通用错误定义 (System Domain)
    """

    # HTTP 400: 请求体/路径参数校验失败 (Pydantic 校验会自动映射到这里)
    INVALID_PARAMS = (
        HTTP_400_BAD_REQUEST,
        "system.invalid_params",
        "Parámetros de la solicitud no válidos",
    )

    # HTTP 404: 路由不存在
    NOT_FOUND = (HTTP_404_NOT_FOUND, "system.not_found", "Recurso no encontrado")

    # HTTP 500: 服务端故障
    INTERNAL_ERROR = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.internal_error",
        "Error interno del servidor",
    )
    # 持久化失败 (连接、约束冲突、超时等任何数据库层错误)
    DB_ERROR = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.db_error",
        "Error al operar con la base de datos",
    )
