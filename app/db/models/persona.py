"""
File: app/db/models/persona.py
Description: 人员 (Persona) 模型

personas 表是三表聚合的父表：
删除一条 personas 记录时，数据库通过 ON DELETE CASCADE 级联删除
对应的 direcciones 与 credenciales_ine 记录。

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import date

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import IntIdBase


class Persona(IntIdBase):
    """
    人员身份信息
    """

    __tablename__ = "personas"

    __table_args__ = (
        CheckConstraint("sexo IN ('H', 'M')", name="sexo_valido"),
        CheckConstraint("length(trim(nombre)) > 0", name="nombre_not_empty"),
    )

    nombre: Mapped[str] = mapped_column(String(100), nullable=False, comment="名")
    apellido_paterno: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="父姓"
    )
    apellido_materno: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="母姓"
    )
    # H = Hombre, M = Mujer
    sexo: Mapped[str] = mapped_column(String(1), nullable=False, comment="性别代码")
    fecha_nacimiento: Mapped[date | None] = mapped_column(
        Date, nullable=True, comment="出生日期 (可选)"
    )
