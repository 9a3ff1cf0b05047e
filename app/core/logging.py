"""
File: app/core/logging.py
Description: 全局日志配置模块 (Loguru)

本模块负责：
1. 拦截 Python 标准库 logging (Uvicorn / FastAPI / SQLAlchemy)，统一转发到 Loguru
2. 配置控制台输出格式（开发环境彩色文本，生产环境 JSON）
3. 按配置启用文件日志 (Rotation / Retention)
4. 日志行自动携带 request_id（由中间件注入）
5. CURP 属于个人身份信息，写入日志前统一脱敏 (patcher)

Author: jinmozhe
Created: 2026-10-12
"""

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from app.core.config import settings

# 需要接管的第三方 logger 前缀
_INTERCEPTED_PREFIXES: tuple[str, ...] = ("uvicorn", "fastapi", "sqlalchemy")

# 需要脱敏的 extra 字段
_PII_EXTRA_KEYS: frozenset[str] = frozenset({"curp", "curp_eliminada"})


def mask_curp(curp: Any) -> str:
    """
    CURP 脱敏。
    规则: 保留前 4 位 (姓名缩写) 和后 2 位，其余用 * 替换。
    示例: RUAL900101HDFXYZ01 -> RUAL************01
    """
    if not isinstance(curp, str) or len(curp) < 8:
        return "******"
    return f"{curp[:4]}{'*' * (len(curp) - 6)}{curp[-2:]}"


def _mask_pii(record: dict[str, Any]) -> None:
    """Loguru patcher: 替换 extra 中的敏感字段"""
    extra = record["extra"]
    for key in _PII_EXTRA_KEYS.intersection(extra):
        extra[key] = mask_curp(extra[key])


class InterceptHandler(logging.Handler):
    """
    标准库 logging → Loguru 的桥接 Handler。
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 回溯到真正的调用方栈帧，保证行号正确
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def format_record(record: dict[str, Any]) -> str:
    """
    文本格式化函数。
    context 中存在 request_id 时追加到行尾。
    """
    format_string = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    if record["extra"].get("request_id"):
        format_string += " | <magenta>req_id={extra[request_id]}</magenta>"

    format_string += "\n{exception}"
    return format_string


def _intercept_stdlib_logging() -> None:
    """接管标准库日志，避免 Uvicorn 重复打印"""
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(settings.LOG_LEVEL)

    for name in list(logging.root.manager.loggerDict.keys()):
        if name.startswith(_INTERCEPTED_PREFIXES):
            std_logger = logging.getLogger(name)
            std_logger.handlers = []
            std_logger.propagate = True

    # SQL 语句日志仅在 DEBUG 模式输出，否则每条查询都会刷屏
    sql_level = logging.INFO if settings.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)


def setup_logging() -> None:
    """
    初始化日志配置。
    应在应用 lifespan 启动阶段调用。
    """
    _intercept_stdlib_logging()

    logger.remove()
    logger.configure(patcher=_mask_pii)  # type: ignore[arg-type]

    base_config: dict[str, Any] = {
        "level": settings.LOG_LEVEL,
        "enqueue": True,
        "backtrace": True,
        "diagnose": settings.LOG_DIAGNOSE,
    }

    # Sink 1: 控制台
    console_config = base_config.copy()
    if settings.LOG_JSON_FORMAT:
        console_config["serialize"] = True
    else:
        console_config["format"] = format_record
        console_config["colorize"] = True

    logger.add(sys.stdout, **console_config)

    # Sink 2: 文件 (按配置启用)
    if settings.LOG_FILE_ENABLED:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_config = base_config | {
            "rotation": settings.LOG_ROTATION,
            "retention": settings.LOG_RETENTION,
            "compression": settings.LOG_COMPRESSION,
        }
        if settings.LOG_JSON_FORMAT:
            file_config["serialize"] = True
        else:
            file_config["format"] = format_record

        logger.add(str(log_dir / "registro_ine_{time:YYYY-MM-DD}.log"), **file_config)

    logger.bind(environment=settings.ENVIRONMENT, level=settings.LOG_LEVEL).info(
        "Logging configured"
    )
