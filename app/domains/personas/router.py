"""
File: app/domains/personas/router.py
Description: 人员登记领域 HTTP 路由层

本模块将 HTTP 请求映射到 PersonaService，错误分类全部交给全局异常处理器：
- 400: 请求体校验失败 / CURP 长度或格式错误 / ID 非正整数
- 404: 记录不存在
- 500: 数据库或系统错误

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import APIRouter, Path, Request, status

from app.core.exceptions import AppException
from app.core.response import CollectionResponseModel, ResponseModel
from app.domains.personas.constants import CURP_LENGTH, PersonaErrorCode, PersonaMsg
from app.domains.personas.dependencies import PersonaServiceDep
from app.domains.personas.schemas import (
    EliminacionCurpResult,
    EliminacionIdResult,
    PersonaDetalle,
    PersonaResumen,
    RegistroIneCreate,
    RegistroIneRead,
)

router = APIRouter()

CurpPath = Annotated[str, Path(description="CURP de 18 caracteres")]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.post(
    "/registrar-ine",
    response_model=ResponseModel[RegistroIneRead],
    status_code=status.HTTP_201_CREATED,
    summary="登记人员 (Persona + Direccion + Credencial INE)",
    description="单事务写入三张表；任一步失败则全部回滚。",
)
async def registrar_ine(
    request: Request,
    registro_in: RegistroIneCreate,
    service: PersonaServiceDep,
) -> ResponseModel[RegistroIneRead]:
    registro = await service.create(registro_in)

    return ResponseModel.ok(
        data=registro,
        message=PersonaMsg.CREATED,
        request_id=_request_id(request),
    )


@router.get(
    "/obtener-usuarios",
    response_model=CollectionResponseModel[PersonaResumen],
    summary="获取全部登记记录",
    description="三表 JOIN，按 ID 降序返回。",
)
async def obtener_usuarios(
    request: Request,
    service: PersonaServiceDep,
) -> CollectionResponseModel[PersonaResumen]:
    personas = await service.list_all()

    return CollectionResponseModel.of(
        personas,
        message=PersonaMsg.FETCH_SUCCESS,
        request_id=_request_id(request),
    )


@router.get(
    "/buscar-curp/{curp}",
    response_model=ResponseModel[PersonaDetalle],
    summary="按 CURP 查询",
)
async def buscar_por_curp(
    request: Request,
    curp: CurpPath,
    service: PersonaServiceDep,
) -> ResponseModel[PersonaDetalle]:
    """
    - CURP 格式错误: 400
    - 未找到: 404 (Service 返回 None，由路由层转换)
    """
    persona = await service.find_by_curp(curp)
    if persona is None:
        raise AppException(PersonaErrorCode.NOT_FOUND)

    return ResponseModel.ok(
        data=persona,
        message=PersonaMsg.FOUND,
        request_id=_request_id(request),
    )


@router.delete(
    "/eliminar-curp/{curp}",
    response_model=ResponseModel[EliminacionCurpResult],
    summary="按 CURP 删除人员",
    description="删除人员记录，地址与证件通过外键级联删除。",
)
async def eliminar_por_curp(
    request: Request,
    curp: CurpPath,
    service: PersonaServiceDep,
) -> ResponseModel[EliminacionCurpResult]:
    if len(curp) != CURP_LENGTH:
        raise AppException(
            PersonaErrorCode.INVALID_CURP, message=PersonaMsg.CURP_LENGTH_INVALID
        )

    resultado = await service.delete_by_curp(curp)

    return ResponseModel.ok(
        data=resultado,
        message=resultado.mensaje,
        request_id=_request_id(request),
    )


@router.delete(
    "/eliminar-id/{persona_id}",
    response_model=ResponseModel[EliminacionIdResult],
    summary="按 ID 删除人员",
    description="ID 必须为正整数；地址与证件通过外键级联删除。",
)
async def eliminar_por_id(
    request: Request,
    persona_id: Annotated[int, Path(gt=0, description="人员 ID (正整数)")],
    service: PersonaServiceDep,
) -> ResponseModel[EliminacionIdResult]:
    resultado = await service.delete_by_id(persona_id)

    return ResponseModel.ok(
        data=resultado,
        message=resultado.mensaje,
        request_id=_request_id(request),
    )
