# backend/equipdb/schemas.py
"""Schema building blocks shared by every app."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """
    Base for request/response bodies.

    JSON uses camelCase (`managerId`, `serviceDueDate`); Python code uses
    the snake_case attribute names. Either form is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(APIModel):
    message: str
