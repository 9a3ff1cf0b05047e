"""
File: app/domains/personas/constants.py
Description: 人员登记领域常量与错误码定义

包含：
1. PersonaErrorCode: 领域错误类型 (InvalidInput / InvalidIdentifier / NotFound / QueryFailure)
2. PersonaMsg: 成功响应文案
3. CURP 相关常量

Author: jinmozhe
Created: 2026-10-12
"""

import re

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from app.core.error_code import BaseErrorCode

# 4 位大写字母 + 6 位出生日期 (YYMMDD) + 性别 (H/M) + 5 位大写字母 + 2 位字母或数字
CURP_LENGTH = 18
CURP_PATTERN = re.compile(r"^[A-Z]{4}[0-9]{6}[HM][A-Z]{5}[A-Z0-9]{2}$")

# 性别代码 → 描述
SEXO_HOMBRE = "H"
SEXO_DESCRIPCION_HOMBRE = "Hombre"
SEXO_DESCRIPCION_MUJER = "Mujer"

# personas.id 为 32 位有符号整数列，超出范围的 ID 不可能存在
PERSONA_ID_MAX = 2**31 - 1


class PersonaErrorCode(BaseErrorCode):
    """
    人员登记领域错误码
    格式: (HTTP状态, 业务码, 默认文案)
    """

    # --- 400 Bad Request ---
    INVALID_INPUT = (
        HTTP_400_BAD_REQUEST,
        "personas.invalid_input",
        "Datos de persona no válidos",
    )
    INVALID_CURP = (
        HTTP_400_BAD_REQUEST,
        "personas.invalid_curp",
        "Formato de CURP inválido. Debe tener 18 caracteres alfanuméricos",
    )
    INVALID_ID = (
        HTTP_400_BAD_REQUEST,
        "personas.invalid_id",
        "El ID debe ser un número positivo",
    )

    # --- 404 Not Found ---
    NOT_FOUND = (
        HTTP_404_NOT_FOUND,
        "personas.not_found",
        "No existe registro con esa CURP",
    )

    # --- 500 Internal ---
    QUERY_FAILED = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "personas.query_failed",
        "Error al recuperar los datos de personas",
    )
    PERSONA_ID_MISSING = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "personas.integrity_error",
        "Error al insertar persona: no se obtuvo ID",
    )


class PersonaMsg:
    """业务文案常量"""

    CREATED = "Registro creado exitosamente"
    FETCH_SUCCESS = "Registros obtenidos exitosamente"
    FOUND = "Registro encontrado"
    DELETED = "Registro eliminado exitosamente"
    DELETED_WITH_RELATIONS = "Registro y sus relaciones eliminados exitosamente"
    CURP_LENGTH_INVALID = "La CURP debe tener exactamente 18 caracteres"
    ID_NOT_FOUND = "No existe persona con el ID especificado"
