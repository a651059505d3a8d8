from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

ItemType = TypeVar("ItemType")


class BaseSchema(BaseModel):
    """
    基础 Schema
    配置:
    - from_attributes=True: 允许从对象属性读取
    - use_enum_values=True: 写入存储时使用枚举的原始值
    """
    model_config = ConfigDict(
        from_attributes=True,
        strict=False,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )


class CursorPage(BaseSchema, Generic[ItemType]):
    items: list[ItemType] = Field(default_factory=list, description="当前页记录")
    next_cursor: str | None = Field(None, description="下一页游标（为空表示没有更多）")
