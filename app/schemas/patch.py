"""
Patch Document Schemas

A patch document is an ordered JSON array of operations:

    [
        {"op": "replace", "path": "/first_name", "value": "Eric"},
        {"op": "test", "path": "/last_name", "value": "Blair"},
        {"op": "copy", "from": "/first_name", "path": "/last_name"}
    ]

Only the shape of each operation is validated here. Whether a path exists
on the target resource is decided by the patch engine
(app.services.patching), which knows the resource's fields.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticCustomError

from app.services.validation import INCOMPLETE_PATCH_OPERATION


class PatchOperationType(str, Enum):
    """Supported operation kinds. Any other "op" value is rejected."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


VALUE_OPERATIONS = frozenset({
    PatchOperationType.ADD,
    PatchOperationType.REPLACE,
    PatchOperationType.TEST,
})
SOURCE_OPERATIONS = frozenset({PatchOperationType.MOVE, PatchOperationType.COPY})


class PatchOperation(BaseModel):
    """A single operation of a patch document."""

    op: PatchOperationType = Field(
        ...,
        description="The operation to perform",
        examples=["replace"],
    )

    path: str = Field(
        ...,
        description="Target field, e.g. /first_name",
        examples=["/first_name"],
    )

    value: Any = Field(
        default=None,
        description="Value for add, replace and test; ignored otherwise",
    )

    # "from" is a Python keyword, so the attribute is from_
    from_: str | None = Field(
        default=None,
        alias="from",
        description="Source field for move and copy",
        examples=["/last_name"],
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"op": "replace", "path": "/first_name", "value": "Eric"}
        },
    )

    @model_validator(mode="after")
    def require_operands(self) -> "PatchOperation":
        """
        add, replace and test need a value; move and copy need a source.

        An explicit null is a value; only an absent member is rejected.
        """
        if self.op in VALUE_OPERATIONS and "value" not in self.model_fields_set:
            raise PydanticCustomError(
                INCOMPLETE_PATCH_OPERATION,
                "'{op}' operation requires a value",
                {"op": self.op.value},
            )
        if self.op in SOURCE_OPERATIONS and self.from_ is None:
            raise PydanticCustomError(
                INCOMPLETE_PATCH_OPERATION,
                "'{op}' operation requires a 'from' location",
                {"op": self.op.value},
            )
        return self
