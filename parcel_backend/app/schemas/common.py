"""
Shared schema base.

The API speaks camelCase JSON (``paymentStatus``, ``trackingId``) while the
Python side keeps snake_case attribute names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ActionResponse(CamelModel):
    """Generic acknowledgement for mutations without a richer payload."""
    success: bool = True
    message: str
