"""
Shared Pydantic base for API schemas.

The wire format is camelCase (startDate, twoWheelers, regNumber); Python
code uses snake_case attribute names.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
