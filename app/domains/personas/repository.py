"""
File: app/domains/personas/repository.py
Description: 人员登记领域仓储层 (Repository)

本模块只负责发出参数化 SQL 语句，不负责事务边界：
事务的开启 / 提交 / 回滚由 Service 层通过 Database 网关控制。

Author: jinmozhe
Created: 2026-10-12
"""

from sqlalchemy import Select, delete, desc, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import CredencialIne, Direccion, Persona


class PersonaRepository:
    """
    personas / direcciones / credenciales_ine 三表的数据访问
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # --------------------------------------------------------------------------
    # 写入操作
    # --------------------------------------------------------------------------

    async def add_persona(self, persona: Persona) -> int | None:
        """
        插入人员记录并返回数据库分配的 ID。
        flush 但不 commit。
        """
        self.session.add(persona)
        await self.session.flush()
        return persona.id

    async def add_direccion(self, direccion: Direccion) -> None:
        self.session.add(direccion)
        await self.session.flush()

    async def add_credencial(self, credencial: CredencialIne) -> None:
        self.session.add(credencial)
        await self.session.flush()

    async def delete_persona(self, persona_id: int) -> int:
        """
        按 ID 删除人员。
        地址与证件由外键 ON DELETE CASCADE 级联删除。

        Returns:
            int: personas 表受影响的行数
        """
        result = await self.session.execute(
            delete(Persona)
            .where(Persona.id == persona_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined]

    # --------------------------------------------------------------------------
    # 查询操作
    # --------------------------------------------------------------------------

    @staticmethod
    def _joined_select() -> Select:
        """三表 INNER JOIN 的基础查询"""
        return (
            select(
                Persona.id,
                Persona.nombre,
                Persona.apellido_paterno,
                Persona.apellido_materno,
                Persona.sexo,
                Persona.fecha_nacimiento,
                Direccion.direccion_completa,
                Direccion.estado,
                Direccion.municipio,
                Direccion.seccion,
                Direccion.codigo_postal,
                CredencialIne.curp,
                CredencialIne.clave_elector,
                CredencialIne.anio_emision,
                CredencialIne.vigencia,
                CredencialIne.numero_credencial,
            )
            .join(Direccion, Direccion.persona_id == Persona.id)
            .join(CredencialIne, CredencialIne.persona_id == Persona.id)
        )

    async def list_joined(self) -> list[RowMapping]:
        """
        全部记录，按 ID 降序 (近似"最近插入在前")
        """
        stmt = self._joined_select().order_by(desc(Persona.id))
        result = await self.session.execute(stmt)
        return list(result.mappings().all())

    async def get_joined_by_curp(self, curp: str) -> RowMapping | None:
        stmt = self._joined_select().where(CredencialIne.curp == curp).limit(1)
        result = await self.session.execute(stmt)
        return result.mappings().first()

    async def get_persona_id_by_curp(self, curp: str) -> int | None:
        stmt = (
            select(Persona.id)
            .join(CredencialIne, CredencialIne.persona_id == Persona.id)
            .where(CredencialIne.curp == curp)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def exists(self, persona_id: int) -> bool:
        """直接查 personas 表确认记录存在"""
        stmt = select(Persona.id).where(Persona.id == persona_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
