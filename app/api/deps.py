"""
File: app/api/deps.py
Description: 全局依赖注入定义 (数据库网关)

Database 实例在 lifespan 中构造并挂载到 app.state，
这里只负责把它注入到领域依赖链中。测试中可通过 dependency_overrides 替换。

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import Depends, Request

from app.db.session import Database


def get_database(request: Request) -> Database:
    """
    获取进程级数据库网关。
    """
    return request.app.state.database


# 数据库网关依赖类型别名
DatabaseDep = Annotated[Database, Depends(get_database)]
