"""
File: app/domains/personas/schemas.py
Description: 人员登记领域 Pydantic 模型 (Schema)

本模块定义了：
1. RegistroIneCreate: 登记请求体 (显式区分必填 / 可选字段，在构造记录模型之前完成校验)
2. PersonaRead / DireccionRead / CredencialRead / RegistroIneRead: 登记结果
3. PersonaResumen: 列表接口的嵌套聚合 (camelCase 输出)
4. PersonaDetalle: CURP 查询接口的扁平聚合
5. EliminacionCurpResult / EliminacionIdResult: 删除结果
6. is_valid_curp: CURP 格式校验

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.domains.personas.constants import CURP_PATTERN

# 记录模型字段划分
PERSONA_FIELDS = frozenset(
    {"nombre", "apellido_paterno", "apellido_materno", "sexo", "fecha_nacimiento"}
)
DIRECCION_FIELDS = frozenset(
    {"direccion_completa", "estado", "municipio", "seccion", "codigo_postal"}
)
CREDENCIAL_FIELDS = frozenset(
    {"curp", "clave_elector", "anio_emision", "vigencia", "numero_credencial"}
)


def is_valid_curp(value: Any) -> bool:
    """
    校验 CURP 格式 (纯函数，无副作用)。
    非字符串一律视为无效。
    """
    return isinstance(value, str) and CURP_PATTERN.fullmatch(value) is not None


# ------------------------------------------------------------------------------
# Input Schemas (输入模型)
# ------------------------------------------------------------------------------


class RegistroIneCreate(BaseModel):
    """
    INE 登记请求 (Persona + Direccion + CredencialIne)。
    必填字段缺失或格式错误时在进入数据库之前即被拒绝。
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    # --- Persona ---
    nombre: str = Field(..., min_length=1, max_length=100, examples=["Ana"])
    apellido_paterno: str = Field(..., min_length=1, max_length=100, examples=["Ruiz"])
    apellido_materno: str = Field(..., min_length=1, max_length=100, examples=["Lopez"])
    sexo: Literal["H", "M"] = Field(..., description="H = Hombre, M = Mujer")
    fecha_nacimiento: date | None = Field(default=None, description="出生日期 (可选)")

    # --- Direccion ---
    direccion_completa: str = Field(..., min_length=1, max_length=255)
    estado: str = Field(..., min_length=1, max_length=60, examples=["CDMX"])
    municipio: str = Field(..., min_length=1, max_length=100)
    seccion: str = Field(..., min_length=1, max_length=10, examples=["001"])
    codigo_postal: str | None = Field(default=None, max_length=10)

    # --- CredencialIne ---
    curp: str = Field(..., examples=["RUAL900101HDFXYZ01"])
    clave_elector: str = Field(..., min_length=1, max_length=18)
    anio_emision: int = Field(..., ge=1900, le=9999)
    vigencia: int = Field(..., ge=1000, le=9999, description="有效期至 (4 位年份)")
    numero_credencial: str | None = Field(default=None, max_length=20)

    @field_validator("curp")
    @classmethod
    def validate_curp(cls, v: str) -> str:
        if not is_valid_curp(v):
            raise ValueError("Formato de CURP inválido")
        return v

    @field_validator("codigo_postal", "numero_credencial", mode="before")
    @classmethod
    def empty_as_absent(cls, v: Any) -> Any:
        """空字符串视为未提供"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_vigencia(self) -> "RegistroIneCreate":
        if self.vigencia < self.anio_emision:
            raise ValueError("La vigencia no puede ser anterior al año de emisión")
        return self

    def persona_data(self) -> dict[str, Any]:
        return self.model_dump(include=set(PERSONA_FIELDS))

    def direccion_data(self) -> dict[str, Any]:
        return self.model_dump(include=set(DIRECCION_FIELDS))

    def credencial_data(self) -> dict[str, Any]:
        return self.model_dump(include=set(CREDENCIAL_FIELDS))


# ------------------------------------------------------------------------------
# Output Schemas: 登记结果
# ------------------------------------------------------------------------------


class PersonaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido_paterno: str
    apellido_materno: str
    sexo: str
    fecha_nacimiento: date | None = None


class DireccionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    direccion_completa: str
    estado: str
    municipio: str
    seccion: str
    codigo_postal: str | None = None


class CredencialRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    curp: str
    clave_elector: str
    anio_emision: int
    vigencia: int
    numero_credencial: str | None = None


class RegistroIneRead(BaseModel):
    """
    登记结果：生成的 ID + 三条记录 + 创建时间
    """

    id: int = Field(..., description="人员 ID (数据库分配)")
    persona: PersonaRead
    direccion: DireccionRead
    credencial: CredencialRead
    timestamp: datetime = Field(..., description="创建时间 (UTC)")


# ------------------------------------------------------------------------------
# Output Schemas: 查询聚合
# ------------------------------------------------------------------------------


class CamelModel(BaseModel):
    """输出字段为 camelCase，同时允许按字段名构造"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InformacionPersonal(CamelModel):
    nombre_completo: str
    sexo: str = Field(..., description="Hombre / Mujer")
    fecha_nacimiento: date | None = None


class DireccionResumen(CamelModel):
    completa: str
    estado: str
    municipio: str
    seccion: str
    codigo_postal: str | None = None


class CredencialResumen(CamelModel):
    curp: str
    clave_elector: str
    vigencia: int
    numero_credencial: str | None = None
    anio_emision: int
    vigente: bool = Field(..., description="vigencia > 当前年份")


class PersonaResumen(CamelModel):
    """列表接口的单条记录"""

    id: int
    informacion_personal: InformacionPersonal
    direccion: DireccionResumen
    credencial: CredencialResumen


class PersonaDetalle(BaseModel):
    """
    CURP 查询结果：三表 JOIN 的扁平行 + 派生字段。
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    nombre: str
    apellido_paterno: str
    apellido_materno: str
    sexo: str
    fecha_nacimiento: date | None = None
    direccion_completa: str
    estado: str
    municipio: str
    seccion: str
    codigo_postal: str | None = None
    curp: str
    clave_elector: str
    anio_emision: int
    vigencia: int
    numero_credencial: str | None = None

    # 派生字段
    nombre_completo: str = Field(..., alias="nombreCompleto")
    sexo_descripcion: str = Field(..., alias="sexoDescripcion")
    credencial_vigente: bool = Field(..., alias="credencialVigente")


# ------------------------------------------------------------------------------
# Output Schemas: 删除结果
# ------------------------------------------------------------------------------


class EliminacionCurpResult(CamelModel):
    filas_eliminadas: int
    mensaje: str
    curp_eliminada: str


class EliminacionIdResult(CamelModel):
    filas_eliminadas: int
    mensaje: str
    id_eliminado: int
    timestamp: datetime
