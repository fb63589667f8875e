# app/schemas/base.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel
