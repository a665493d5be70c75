"""
services/changes.py
-------------------
Partial-update helper shared by the PATCH endpoints.
"""

from enum import Enum
from typing import Iterable

from pydantic import BaseModel


def apply_changes(
    target: object,
    patch: BaseModel,
    nullable: Iterable[str] = ("description",),
) -> list[str]:
    """
    Copy the fields the client actually sent onto an ORM object.

    An explicit null clears a nullable column and is ignored for any other
    column. Returns the names of the fields that were written.
    """
    written = []
    for field, value in patch.model_dump(exclude_unset=True).items():
        if value is None and field not in nullable:
            continue
        if isinstance(value, Enum):
            value = value.value
        setattr(target, field, value)
        written.append(field)
    return sorted(written)
