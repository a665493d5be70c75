"""
schemas/common.py
-----------------
Shared Pydantic base.

The dashboard and public page speak camelCase JSON (serviceId, oldStatus, ...)
on both the REST API and the socket channel. Python code keeps snake_case
field names; aliases are generated and used on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
