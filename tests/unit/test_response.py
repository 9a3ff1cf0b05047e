"""
File: tests/unit/test_response.py
Description: 统一响应信封单元测试

Author: jinmozhe
Created: 2026-10-19
"""

from app.core.response import CollectionResponseModel, ResponseModel
from app.domains.personas.schemas import EliminacionCurpResult


def test_ok_builds_success_envelope() -> None:
    resultado = EliminacionCurpResult(
        filas_eliminadas=1,
        mensaje="Registro eliminado exitosamente",
        curp_eliminada="RUAL900101HDFXYZ01",
    )

    response = ResponseModel.ok(data=resultado, message="ok", request_id="req-1")

    assert response.success is True
    assert response.code == "success"
    assert response.request_id == "req-1"
    # data 按别名 (camelCase) 序列化
    assert response.data == {
        "filasEliminadas": 1,
        "mensaje": "Registro eliminado exitosamente",
        "curpEliminada": "RUAL900101HDFXYZ01",
    }


def test_ok_on_parametrized_model() -> None:
    response = ResponseModel[dict[str, str]].ok(data={"status": "ok"})

    dumped = response.model_dump()
    assert dumped["success"] is True
    assert dumped["data"] == {"status": "ok"}


def test_fail_builds_error_envelope() -> None:
    response = ResponseModel.fail(
        code="personas.not_found", message="No existe registro con esa CURP"
    )

    assert response.success is False
    assert response.code == "personas.not_found"
    assert response.data is None


def test_collection_envelope_counts_items() -> None:
    response = CollectionResponseModel.of([{"id": 2}, {"id": 1}])

    assert response.success is True
    assert response.count == 2
    assert response.data == [{"id": 2}, {"id": 1}]
