"""
File: app/domains/personas/service.py
Description: 人员登记领域服务 (业务逻辑层)

本模块保证跨三张表的写操作"全有或全无"，读操作总是返回完整 JOIN 视图：
1. create: 登记 (Persona → Direccion → CredencialIne，单事务)
2. list_all: 全部记录 (嵌套聚合，ID 降序)
3. find_by_curp: 按 CURP 查询 (未找到返回 None，不抛异常)
4. delete_by_curp / delete_by_id: 删除人员 (依赖外键级联删除从表)

约定：
- 标识符 (CURP / ID) 不合法时在访问数据库之前抛出 AppException
- 事务内任何失败：回滚，原异常原样向上抛出，由异常处理器分类
- 每个操作恰好占用一个连接，任何退出路径都会归还
- 不做任何重试

Author: jinmozhe
Created: 2026-10-12
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import AppException
from app.core.logging import logger
from app.db.models import CredencialIne, Direccion, Persona
from app.db.session import Database
from app.domains.personas.constants import (
    PERSONA_ID_MAX,
    SEXO_DESCRIPCION_HOMBRE,
    SEXO_DESCRIPCION_MUJER,
    SEXO_HOMBRE,
    PersonaErrorCode,
    PersonaMsg,
)
from app.domains.personas.repository import PersonaRepository
from app.domains.personas.schemas import (
    CredencialRead,
    CredencialResumen,
    DireccionRead,
    DireccionResumen,
    EliminacionCurpResult,
    EliminacionIdResult,
    InformacionPersonal,
    PersonaDetalle,
    PersonaRead,
    PersonaResumen,
    RegistroIneCreate,
    RegistroIneRead,
    is_valid_curp,
)

# ------------------------------------------------------------------------------
# 派生字段
# ------------------------------------------------------------------------------


def build_full_name(nombre: str, apellido_paterno: str, apellido_materno: str) -> str:
    return f"{nombre} {apellido_paterno} {apellido_materno}"


def describe_sex(sexo: str | None) -> str:
    """H → Hombre，其它任何值 → Mujer"""
    return SEXO_DESCRIPCION_HOMBRE if sexo == SEXO_HOMBRE else SEXO_DESCRIPCION_MUJER


def is_current(vigencia: int, current_year: int | None = None) -> bool:
    """证件有效：有效期年份严格大于查询时的当前年份"""
    if current_year is None:
        current_year = date.today().year
    return vigencia > current_year


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class PersonaService:
    """
    人员登记服务。

    职责：
    - 校验标识符 (CURP 格式、正整数 ID)
    - 编排多表写入的事务边界
    - 将数据库行转换为响应聚合
    """

    def __init__(self, database: Database):
        self.database = database

    # --------------------------------------------------------------------------
    # Create
    # --------------------------------------------------------------------------

    @staticmethod
    def _parse_input(datos: RegistroIneCreate | Mapping[str, Any] | None) -> RegistroIneCreate:
        """将输入规整为 RegistroIneCreate，失败时抛出 InvalidInput"""
        if isinstance(datos, RegistroIneCreate):
            return datos

        if not isinstance(datos, Mapping):
            raise AppException(PersonaErrorCode.INVALID_INPUT)

        try:
            return RegistroIneCreate.model_validate(dict(datos))
        except ValidationError as exc:
            errors = [
                {"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()
            ]
            raise AppException(
                PersonaErrorCode.INVALID_INPUT,
                data={"errors": errors},
                detail=str(exc),
            ) from exc

    async def create(
        self, datos: RegistroIneCreate | Mapping[str, Any] | None
    ) -> RegistroIneRead:
        """
        登记人员 + 地址 + 证件。

        1. 构造三条内存记录 (失败 → InvalidInput，不占用连接)
        2. 开启事务，插入 Persona 并取得 ID (无 ID → 完整性错误)
        3. 以该 ID 为外键插入 Direccion、CredencialIne
        4. 提交；任一步失败则回滚并原样抛出
        """
        registro = self._parse_input(datos)

        try:
            persona = Persona(**registro.persona_data())
            direccion = Direccion(**registro.direccion_data())
            credencial = CredencialIne(**registro.credencial_data())
        except (TypeError, ValueError) as exc:
            raise AppException(
                PersonaErrorCode.INVALID_INPUT,
                message=f"Error en modelos: {exc}",
            ) from exc

        try:
            async with self.database.transaction() as session:
                repo = PersonaRepository(session)

                persona_id = await repo.add_persona(persona)
                if not persona_id:
                    raise AppException(PersonaErrorCode.PERSONA_ID_MISSING)

                direccion.persona_id = persona_id
                await repo.add_direccion(direccion)

                credencial.persona_id = persona_id
                await repo.add_credencial(credencial)
        except Exception as exc:
            logger.bind(curp=registro.curp, error=repr(exc)).warning(
                "Registro transaction rolled back"
            )
            raise

        logger.bind(persona_id=persona_id, curp=registro.curp).info(
            "Registro created successfully"
        )

        return RegistroIneRead(
            id=persona_id,
            persona=PersonaRead.model_validate(persona),
            direccion=DireccionRead.model_validate(direccion),
            credencial=CredencialRead.model_validate(credencial),
            timestamp=datetime.now(UTC),
        )

    # --------------------------------------------------------------------------
    # Read
    # --------------------------------------------------------------------------

    @staticmethod
    def _to_resumen(row: RowMapping, current_year: int) -> PersonaResumen:
        return PersonaResumen(
            id=row["id"],
            informacion_personal=InformacionPersonal(
                nombre_completo=build_full_name(
                    row["nombre"], row["apellido_paterno"], row["apellido_materno"]
                ),
                sexo=describe_sex(row["sexo"]),
                fecha_nacimiento=row["fecha_nacimiento"],
            ),
            direccion=DireccionResumen(
                completa=row["direccion_completa"],
                estado=row["estado"],
                municipio=row["municipio"],
                seccion=row["seccion"],
                codigo_postal=row["codigo_postal"],
            ),
            credencial=CredencialResumen(
                curp=row["curp"],
                clave_elector=row["clave_elector"],
                vigencia=row["vigencia"],
                numero_credencial=row["numero_credencial"],
                anio_emision=row["anio_emision"],
                vigente=is_current(row["vigencia"], current_year),
            ),
        )

    async def list_all(self) -> list[PersonaResumen]:
        """
        全部登记记录 (ID 降序)。
        数据库错误统一包装为 QueryFailure，原始信息只作为内部诊断。
        """
        try:
            async with self.database.session() as session:
                rows = await PersonaRepository(session).list_joined()
        except SQLAlchemyError as exc:
            raise AppException(PersonaErrorCode.QUERY_FAILED, detail=str(exc)) from exc

        current_year = date.today().year
        return [self._to_resumen(row, current_year) for row in rows]

    async def find_by_curp(self, curp: str) -> PersonaDetalle | None:
        """
        按 CURP 查询单条记录。
        未找到时返回 None (空结果不是错误)。
        """
        if not is_valid_curp(curp):
            raise AppException(PersonaErrorCode.INVALID_CURP)

        async with self.database.session() as session:
            row = await PersonaRepository(session).get_joined_by_curp(curp)

        if row is None:
            logger.bind(curp=curp).info("CURP lookup returned no record")
            return None

        return PersonaDetalle(
            **row,
            nombre_completo=build_full_name(
                row["nombre"], row["apellido_paterno"], row["apellido_materno"]
            ),
            sexo_descripcion=describe_sex(row["sexo"]),
            credencial_vigente=is_current(row["vigencia"]),
        )

    # --------------------------------------------------------------------------
    # Delete
    # --------------------------------------------------------------------------

    async def delete_by_curp(self, curp: str) -> EliminacionCurpResult:
        """
        按 CURP 删除人员及其地址、证件 (单事务)。
        """
        if not is_valid_curp(curp):
            raise AppException(PersonaErrorCode.INVALID_CURP)

        async with self.database.transaction() as session:
            repo = PersonaRepository(session)

            persona_id = await repo.get_persona_id_by_curp(curp)
            if persona_id is None:
                raise AppException(PersonaErrorCode.NOT_FOUND)

            filas = await repo.delete_persona(persona_id)

        logger.bind(curp=curp, persona_id=persona_id, rows=filas).info(
            "Persona deleted by CURP"
        )

        return EliminacionCurpResult(
            filas_eliminadas=filas,
            mensaje=PersonaMsg.DELETED,
            curp_eliminada=curp,
        )

    async def delete_by_id(self, persona_id: int) -> EliminacionIdResult:
        """
        按 ID 删除人员及其地址、证件 (单事务)。
        """
        if not _is_positive_int(persona_id):
            raise AppException(PersonaErrorCode.INVALID_ID)

        if persona_id > PERSONA_ID_MAX:
            raise AppException(
                PersonaErrorCode.NOT_FOUND, message=PersonaMsg.ID_NOT_FOUND
            )

        async with self.database.transaction() as session:
            repo = PersonaRepository(session)

            if not await repo.exists(persona_id):
                raise AppException(
                    PersonaErrorCode.NOT_FOUND, message=PersonaMsg.ID_NOT_FOUND
                )

            filas = await repo.delete_persona(persona_id)

        logger.bind(persona_id=persona_id, rows=filas).info("Persona deleted by ID")

        return EliminacionIdResult(
            filas_eliminadas=filas,
            mensaje=PersonaMsg.DELETED_WITH_RELATIONS,
            id_eliminado=persona_id,
            timestamp=datetime.now(UTC),
        )
