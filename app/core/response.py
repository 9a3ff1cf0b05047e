"""
File: app/core/response.py
Description: 统一响应信封（Unified Response Envelope）模型与辅助函数

所有 HTTP 接口必须遵循此契约返回数据：
- success: 是否成功
- code: 成功时为 "success"，失败时为机器可读的错误标识 (domain.reason)
- message: 人类可读消息
- request_id / timestamp: 追踪信息
- data: 业务数据 (列表接口额外返回 count)

data 中的 Pydantic 模型按别名序列化 (人员汇总等使用 camelCase 字段)。
成功响应使用 ResponseModel.ok()，失败响应使用 ResponseModel.fail()。

Author: jinmozhe
Created: 2026-10-12
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


def _to_jsonable(data: Any) -> Any:
    """将 Pydantic 模型 (或模型列表) 转换为 JSON 安全的字典，保留字段别名"""
    if hasattr(data, "model_dump"):
        return cast(Any, data).model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


class ResponseBase(BaseModel):
    """
    响应基类
    """

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(default=True, description="是否成功")
    code: str = Field(default="success", description="业务状态码 / 错误标识")
    message: str = Field(default="Success", description="响应消息")
    request_id: str | None = Field(default=None, description="请求追踪ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="响应生成时间",
    )


class ResponseModel(ResponseBase, Generic[T]):
    """
    统一响应信封
    """

    data: T | None = Field(default=None, description="业务数据")

    @classmethod
    def ok(
        cls,
        data: T | None = None,
        message: str = "Success",
        request_id: str | None = None,
    ) -> "ResponseModel[T]":
        """
        构造成功响应
        """
        return cls(
            success=True,
            code="success",
            message=message,
            data=_to_jsonable(data),
            request_id=request_id,
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        data: Any = None,
        request_id: str | None = None,
    ) -> "ResponseModel[Any]":
        """
        构造失败响应
        """
        return cls(
            success=False,
            code=code,
            message=message,
            data=data,
            request_id=request_id,
        )


class CollectionResponseModel(ResponseBase, Generic[T]):
    """
    列表响应信封 (附带 count)
    """

    count: int = Field(default=0, description="记录总数")
    data: list[T] = Field(default_factory=list, description="记录列表")

    @classmethod
    def of(
        cls,
        items: Sequence[T],
        message: str = "Success",
        request_id: str | None = None,
    ) -> "CollectionResponseModel[T]":
        """构造列表成功响应"""
        return cls(
            count=len(items),
            data=_to_jsonable(list(items)),
            message=message,
            request_id=request_id,
        )
