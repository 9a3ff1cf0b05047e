"""
File: app/db/models/__init__.py
Description: ORM 模型注册表

导入全部模型，确保 Base.metadata 在建表 (create_all) 时能发现所有表。
新增模型必须在此处导入。

Author: jinmozhe
Created: 2026-10-12
"""

from app.db.models.base import Base, IntIdBase
from app.db.models.credencial_ine import CredencialIne
from app.db.models.direccion import Direccion
from app.db.models.persona import Persona

__all__ = [
    # 基类
    "Base",
    "IntIdBase",
    # 业务模型
    "Persona",
    "Direccion",
    "CredencialIne",
]
