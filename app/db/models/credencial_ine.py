"""
File: app/db/models/credencial_ine.py
Description: 选民证 (Credencial INE) 模型，与 Persona 一对一

约束：
- curp 全局唯一，固定 18 位
- vigencia 为 4 位年份，"是否有效" 为查询时派生属性，不落库

Author: jinmozhe
Created: 2026-10-12
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import IntIdBase


class CredencialIne(IntIdBase):
    """
    INE 选民证信息
    """

    __tablename__ = "credenciales_ine"

    __table_args__ = (
        CheckConstraint("length(curp) = 18", name="curp_length"),
        CheckConstraint("vigencia BETWEEN 1000 AND 9999", name="vigencia_anio"),
    )

    persona_id: Mapped[int] = mapped_column(
        ForeignKey("personas.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="所属人员",
    )

    curp: Mapped[str] = mapped_column(
        String(18), unique=True, nullable=False, comment="CURP (全国唯一身份码)"
    )
    clave_elector: Mapped[str] = mapped_column(
        String(18), nullable=False, comment="选民代码"
    )
    anio_emision: Mapped[int] = mapped_column(Integer, nullable=False, comment="签发年份")
    vigencia: Mapped[int] = mapped_column(Integer, nullable=False, comment="有效期至 (年)")
    numero_credencial: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="证件编号 (可选)"
    )
