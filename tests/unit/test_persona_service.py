"""
File: tests/unit/test_persona_service.py
Description: 人员登记领域服务单元测试

本模块测试 PersonaService 的核心业务逻辑：
1. 登记 (Happy Path) 与读后写一致性
2. 原子性：任一插入步骤失败时三张表均无残留
3. 级联删除：删除人员后地址与证件同时消失
4. 标识符校验在访问数据库之前完成 (不占用连接)
5. "未找到" 与数据库错误的区分

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import date

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import AppException
from app.db.session import Database
from app.domains.personas.constants import PersonaErrorCode
from app.domains.personas.repository import PersonaRepository
from app.domains.personas.schemas import RegistroIneCreate
from app.domains.personas.service import (
    PersonaService,
    build_full_name,
    describe_sex,
    is_current,
)

# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------


@pytest.fixture
def persona_service(database: Database) -> PersonaService:
    """绑定测试库的 PersonaService 实例"""
    return PersonaService(database)


@pytest.fixture
def checkouts(database: Database) -> list[object]:
    """记录连接池的每一次连接借出"""
    events: list[object] = []

    def _on_checkout(dbapi_conn, conn_record, conn_proxy) -> None:
        events.append(conn_record)

    event.listen(database.engine.sync_engine, "checkout", _on_checkout)
    return events


def _pool_checked_out(database: Database) -> int:
    return database.engine.sync_engine.pool.checkedout()  # type: ignore[attr-defined]


# ------------------------------------------------------------------------------
# 派生字段
# ------------------------------------------------------------------------------


def test_derived_fields() -> None:
    assert build_full_name("Ana", "Ruiz", "Lopez") == "Ana Ruiz Lopez"
    assert describe_sex("H") == "Hombre"
    assert describe_sex("M") == "Mujer"
    assert describe_sex("X") == "Mujer"
    assert is_current(2030, current_year=2026) is True
    assert is_current(2026, current_year=2026) is False
    assert is_current(date.today().year + 1) is True


# ------------------------------------------------------------------------------
# Create
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_registro_success(
    persona_service: PersonaService, make_payload, table_counts
) -> None:
    """测试：正常登记，三张表各写入一行"""
    registro = await persona_service.create(RegistroIneCreate(**make_payload()))

    assert registro.id > 0
    assert registro.persona.id == registro.id
    assert registro.persona.nombre == "Ana"
    assert registro.persona.fecha_nacimiento is None
    assert registro.direccion.codigo_postal is None
    assert registro.credencial.curp == "RUAL900101HDFXYZ01"
    assert registro.credencial.numero_credencial is None
    assert registro.timestamp is not None

    assert await table_counts(registro.id) == {
        "personas": 1,
        "direcciones": 1,
        "credenciales_ine": 1,
    }


@pytest.mark.asyncio
async def test_create_accepts_plain_mapping(
    persona_service: PersonaService, make_payload
) -> None:
    registro = await persona_service.create(make_payload(codigo_postal="03100"))

    assert registro.direccion.codigo_postal == "03100"


@pytest.mark.asyncio
@pytest.mark.parametrize("datos", [None, "not-a-dict", 42, ["nombre", "Ana"]])
async def test_create_rejects_non_object_input(
    persona_service: PersonaService, checkouts: list[object], datos
) -> None:
    """测试：非结构化输入直接被拒绝，不占用连接"""
    with pytest.raises(AppException) as excinfo:
        await persona_service.create(datos)

    assert excinfo.value.code == PersonaErrorCode.INVALID_INPUT.code
    assert excinfo.value.http_status == 400
    assert checkouts == []


@pytest.mark.asyncio
async def test_create_rejects_missing_required_field(
    persona_service: PersonaService, make_payload, checkouts: list[object]
) -> None:
    payload = make_payload()
    del payload["nombre"]

    with pytest.raises(AppException) as excinfo:
        await persona_service.create(payload)

    assert excinfo.value.code == PersonaErrorCode.INVALID_INPUT.code
    assert excinfo.value.data["errors"][0]["loc"] == ["nombre"]
    assert checkouts == []


@pytest.mark.asyncio
async def test_create_rolls_back_when_credential_insert_fails(
    persona_service: PersonaService,
    make_payload,
    table_counts,
    database: Database,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """测试：Persona 与 Direccion 已插入后证件插入失败 → 三张表零残留，原异常原样抛出"""
    boom = RuntimeError("credential insert failed")

    async def _failing_add_credencial(self, credencial) -> None:
        raise boom

    monkeypatch.setattr(PersonaRepository, "add_credencial", _failing_add_credencial)

    with pytest.raises(RuntimeError) as excinfo:
        await persona_service.create(make_payload())

    assert excinfo.value is boom
    assert await table_counts() == {
        "personas": 0,
        "direcciones": 0,
        "credenciales_ine": 0,
    }
    assert _pool_checked_out(database) == 0


@pytest.mark.asyncio
async def test_create_duplicate_curp_rolls_back_whole_record(
    persona_service: PersonaService, make_payload, table_counts, database: Database
) -> None:
    """测试：CURP 唯一约束冲突发生在第三步，第二个人员也不会残留"""
    await persona_service.create(make_payload())

    with pytest.raises(IntegrityError):
        await persona_service.create(
            make_payload(nombre="Beatriz", clave_elector="OTRA000000M100")
        )

    assert await table_counts() == {
        "personas": 1,
        "direcciones": 1,
        "credenciales_ine": 1,
    }
    assert _pool_checked_out(database) == 0


@pytest.mark.asyncio
async def test_create_missing_identifier_is_integrity_failure(
    persona_service: PersonaService,
    make_payload,
    table_counts,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _no_id(self, persona) -> None:
        self.session.add(persona)
        await self.session.flush()
        return None

    monkeypatch.setattr(PersonaRepository, "add_persona", _no_id)

    with pytest.raises(AppException) as excinfo:
        await persona_service.create(make_payload())

    assert excinfo.value.code == PersonaErrorCode.PERSONA_ID_MISSING.code
    assert (await table_counts())["personas"] == 0


# ------------------------------------------------------------------------------
# Read
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_all_scenario(persona_service: PersonaService, make_payload) -> None:
    """测试：Ana Ruiz Lopez 场景"""
    registro = await persona_service.create(make_payload())

    personas = await persona_service.list_all()

    assert len(personas) == 1
    persona = personas[0]
    assert persona.id == registro.id
    assert persona.informacion_personal.nombre_completo == "Ana Ruiz Lopez"
    assert persona.informacion_personal.sexo == "Hombre"
    assert persona.direccion.completa == "Calle 1"
    assert persona.direccion.seccion == "001"
    assert persona.credencial.vigente is True


@pytest.mark.asyncio
async def test_list_all_orders_by_id_descending(
    persona_service: PersonaService, make_payload
) -> None:
    primero = await persona_service.create(make_payload())
    segundo = await persona_service.create(
        make_payload(
            nombre="Maria",
            sexo="M",
            curp="GOMM850315MDFRRR09",
            clave_elector="GOMM850315M200",
            anio_emision=2015,
            vigencia=2020,
        )
    )

    personas = await persona_service.list_all()

    assert [p.id for p in personas] == [segundo.id, primero.id]
    assert personas[0].informacion_personal.sexo == "Mujer"
    assert personas[0].credencial.vigente is False


@pytest.mark.asyncio
async def test_list_all_empty(persona_service: PersonaService) -> None:
    assert await persona_service.list_all() == []


@pytest.mark.asyncio
async def test_list_all_wraps_database_errors(
    persona_service: PersonaService, monkeypatch: pytest.MonkeyPatch
) -> None:
    """测试：数据库错误被包装为 QueryFailure，原始信息只保留在 detail"""

    async def _broken(self):
        raise SQLAlchemyError("connection reset by peer")

    monkeypatch.setattr(PersonaRepository, "list_joined", _broken)

    with pytest.raises(AppException) as excinfo:
        await persona_service.list_all()

    assert excinfo.value.code == PersonaErrorCode.QUERY_FAILED.code
    assert excinfo.value.http_status == 500
    assert "connection reset" not in excinfo.value.message
    assert "connection reset" in (excinfo.value.detail or "")


@pytest.mark.asyncio
async def test_find_by_curp_read_after_write(
    persona_service: PersonaService, make_payload
) -> None:
    payload = make_payload(
        fecha_nacimiento="1990-01-01", codigo_postal="03100", numero_credencial="0001"
    )
    registro = await persona_service.create(payload)

    persona = await persona_service.find_by_curp(payload["curp"])

    assert persona is not None
    assert persona.id == registro.id
    assert persona.nombre == "Ana"
    assert persona.apellido_paterno == "Ruiz"
    assert persona.apellido_materno == "Lopez"
    assert persona.fecha_nacimiento == date(1990, 1, 1)
    assert persona.direccion_completa == "Calle 1"
    assert persona.estado == "CDMX"
    assert persona.municipio == "Benito Juarez"
    assert persona.codigo_postal == "03100"
    assert persona.clave_elector == "RUAL900101H100"
    assert persona.anio_emision == 2020
    assert persona.vigencia == 2030
    assert persona.numero_credencial == "0001"
    assert persona.nombre_completo == "Ana Ruiz Lopez"
    assert persona.sexo_descripcion == "Hombre"
    assert persona.credencial_vigente == (2030 > date.today().year)


@pytest.mark.asyncio
async def test_find_by_curp_unknown_returns_none(
    persona_service: PersonaService,
) -> None:
    """测试：格式合法但不存在的 CURP 返回 None 而不是异常"""
    assert await persona_service.find_by_curp("GOMM850315MDFRRR09") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "curp",
    [
        "rual900101hdfxyz01",
        "RUAL900101XDFXYZ01",
        "RUAL900101HDFXYZ0",
        "RUAL900101HDFXYZ011",
        "",
    ],
)
async def test_find_by_curp_invalid_never_touches_database(
    persona_service: PersonaService, checkouts: list[object], curp: str
) -> None:
    with pytest.raises(AppException) as excinfo:
        await persona_service.find_by_curp(curp)

    assert excinfo.value.code == PersonaErrorCode.INVALID_CURP.code
    assert checkouts == []


# ------------------------------------------------------------------------------
# Delete
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_by_curp_cascades(
    persona_service: PersonaService, make_payload, table_counts, database: Database
) -> None:
    """测试：删除人员后地址与证件同时被级联删除"""
    registro = await persona_service.create(make_payload())
    assert await table_counts(registro.id) == {
        "personas": 1,
        "direcciones": 1,
        "credenciales_ine": 1,
    }

    resultado = await persona_service.delete_by_curp("RUAL900101HDFXYZ01")

    assert resultado.filas_eliminadas == 1
    assert resultado.curp_eliminada == "RUAL900101HDFXYZ01"
    assert resultado.mensaje == "Registro eliminado exitosamente"
    assert await table_counts(registro.id) == {
        "personas": 0,
        "direcciones": 0,
        "credenciales_ine": 0,
    }
    assert _pool_checked_out(database) == 0


@pytest.mark.asyncio
async def test_delete_by_curp_only_removes_target(
    persona_service: PersonaService, make_payload, table_counts
) -> None:
    await persona_service.create(make_payload())
    otro = await persona_service.create(
        make_payload(curp="GOMM850315MDFRRR09", clave_elector="GOMM850315M200")
    )

    await persona_service.delete_by_curp("RUAL900101HDFXYZ01")

    assert await table_counts() == {
        "personas": 1,
        "direcciones": 1,
        "credenciales_ine": 1,
    }
    assert (await table_counts(otro.id))["credenciales_ine"] == 1


@pytest.mark.asyncio
async def test_delete_by_curp_not_found(
    persona_service: PersonaService, database: Database
) -> None:
    with pytest.raises(AppException) as excinfo:
        await persona_service.delete_by_curp("GOMM850315MDFRRR09")

    assert excinfo.value.code == PersonaErrorCode.NOT_FOUND.code
    assert excinfo.value.http_status == 404
    assert _pool_checked_out(database) == 0


@pytest.mark.asyncio
async def test_delete_by_curp_invalid_format(
    persona_service: PersonaService, checkouts: list[object]
) -> None:
    with pytest.raises(AppException) as excinfo:
        await persona_service.delete_by_curp("RUAL900101XDFXYZ01")

    assert excinfo.value.code == PersonaErrorCode.INVALID_CURP.code
    assert checkouts == []


@pytest.mark.asyncio
async def test_delete_by_id_cascades(
    persona_service: PersonaService, make_payload, table_counts
) -> None:
    registro = await persona_service.create(make_payload())

    resultado = await persona_service.delete_by_id(registro.id)

    assert resultado.filas_eliminadas == 1
    assert resultado.id_eliminado == registro.id
    assert resultado.timestamp is not None
    assert await table_counts() == {
        "personas": 0,
        "direcciones": 0,
        "credenciales_ine": 0,
    }


@pytest.mark.asyncio
async def test_delete_by_id_not_found_is_distinct_from_persistence_failure(
    persona_service: PersonaService,
) -> None:
    """测试：不存在的 ID → NotFound (AppException 404)，不是数据库异常"""
    with pytest.raises(AppException) as excinfo:
        await persona_service.delete_by_id(999_999)

    assert not isinstance(excinfo.value, SQLAlchemyError)
    assert excinfo.value.code == PersonaErrorCode.NOT_FOUND.code
    assert excinfo.value.message == "No existe persona con el ID especificado"


@pytest.mark.asyncio
@pytest.mark.parametrize("persona_id", [0, -1, True, "5", 1.5])
async def test_delete_by_id_invalid_identifier(
    persona_service: PersonaService, checkouts: list[object], persona_id
) -> None:
    with pytest.raises(AppException) as excinfo:
        await persona_service.delete_by_id(persona_id)

    assert excinfo.value.code == PersonaErrorCode.INVALID_ID.code
    assert checkouts == []


@pytest.mark.asyncio
@pytest.mark.parametrize("persona_id", [2**31, 99999999999999999999999])
async def test_delete_by_id_beyond_column_range_is_not_found(
    persona_service: PersonaService, checkouts: list[object], persona_id: int
) -> None:
    """测试：超出 personas.id 列范围的正整数 → NotFound，不交给数据库驱动"""
    with pytest.raises(AppException) as excinfo:
        await persona_service.delete_by_id(persona_id)

    assert excinfo.value.code == PersonaErrorCode.NOT_FOUND.code
    assert excinfo.value.http_status == 404
    assert checkouts == []
