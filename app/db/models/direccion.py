"""
File: app/db/models/direccion.py
Description: 地址 (Direccion) 模型，与 Persona 一对一

Author: jinmozhe
Created: 2026-10-12
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import IntIdBase


class Direccion(IntIdBase):
    __tablename__ = "direcciones"

    # unique=True 保证一对一
    persona_id: Mapped[int] = mapped_column(
        ForeignKey("personas.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="所属人员",
    )

    direccion_completa: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="完整地址"
    )
    estado: Mapped[str] = mapped_column(String(60), nullable=False, comment="州")
    municipio: Mapped[str] = mapped_column(String(100), nullable=False, comment="市/区")
    seccion: Mapped[str] = mapped_column(String(10), nullable=False, comment="选区")
    codigo_postal: Mapped[str | None] = mapped_column(
        String(10), nullable=True, comment="邮编 (可选)"
    )
