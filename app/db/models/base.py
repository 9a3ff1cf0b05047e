"""
File: app/db/models/base.py
Description: ORM 模型基类

本模块提供：
1. Base: 声明式基类 (带约束命名约定，PostgreSQL / SQLite 通用)
2. IntIdBase: 自增整数主键基类

记录模型只是纯数据载体：构造时按字段赋值，未提供的可选字段显式为 None。

Author: jinmozhe
Created: 2026-10-12
"""

from sqlalchemy import Integer, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# 约束命名约定
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """SQLAlchemy 声明式元类"""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class IntIdBase(Base):
    """
    自增整数主键基类。
    主键由数据库分配，插入 flush 之后可读取。
    """

    __abstract__ = True

    # Integer 而非 BigInteger：SQLite 只对 INTEGER PRIMARY KEY 自增
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True, comment="主键"
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
