"""
Leakwatch - Recovery Action Schemas
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReminderRequest(_CamelModel):
    cart_id: str
    email: Optional[str] = None
    name: str = "Customer"
    total: float = 0


class ReminderResult(_CamelModel):
    success: bool
    message: str
    sent_to: str = ""
    cart_id: str


class DiscountRequest(_CamelModel):
    cart_id: str
    discount_percent: int = Field(default=15, ge=1, le=100)


class DiscountResult(_CamelModel):
    success: bool
    discount_code: Optional[str] = None
    discount_value: Optional[str] = None
    expires_at: Optional[str] = None
    message: Optional[str] = None
