"""
Patch Engine

Applies a patch document (an ordered list of PatchOperation) to an update
request model such as AuthorForUpdate.

How Paths Are Resolved
======================
Each model class gets a PatchSchema, built once and cached: a table from
path to FieldAccessor. Paths are "/" followed by the field name, compared
case-insensitively, with or without underscores:

    /first_name, /firstname and /firstName all address first_name

Anything else (nested paths, unknown names, paths without a leading "/")
is an UnknownPath failure.

The test Operation
==================
test compares JSON values (json_equal): true does not match 1 and "1"
does not match 1, while numbers compare by value, so 1 matches 1.0.

Atomicity
=========
Operations run against a deep copy of the model's data. The caller's model
is never touched, and the copy is discarded if any operation fails, so a
failed patch has no partial effects.

The engine does not validate value types or constraints. The caller
re-validates the returned model (see app.services.validation) and decides
what to persist.
"""

import copy
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel

from app.schemas.patch import PatchOperation, PatchOperationType

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PatchFailureReason(str, Enum):
    TEST_MISMATCH = "TestMismatch"
    UNKNOWN_PATH = "UnknownPath"
    ILLEGAL_REMOVAL = "IllegalRemoval"
    MISSING_SOURCE = "MissingSource"


class PatchFailure(Exception):
    """
    A patch document could not be applied.

    Attributes:
        reason: Which rule the operation broke
        path: The path (or source path) of the failing operation
        index: Position of the failing operation in the document
    """

    def __init__(
        self,
        reason: PatchFailureReason,
        path: str | None,
        message: str,
        index: int | None = None,
    ) -> None:
        self.reason = reason
        self.path = path
        self.index = index
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason.value,
            "path": self.path,
            "index": self.index,
            "message": self.message,
        }


@dataclass(frozen=True)
class FieldAccessor:
    """Getter/setter pair for one field of a model's data."""

    name: str
    required: bool

    def get(self, data: dict[str, Any]) -> Any:
        return data.get(self.name)

    def set(self, data: dict[str, Any], value: Any) -> None:
        data[self.name] = value

    def clear(self, data: dict[str, Any]) -> None:
        data[self.name] = None


def _normalize_path(path: str) -> str:
    return path.lower().replace("_", "")


class PatchSchema:
    """Path → FieldAccessor table for one model class."""

    def __init__(self, model_name: str, accessors: Mapping[str, FieldAccessor]) -> None:
        self.model_name = model_name
        self._accessors = MappingProxyType(dict(accessors))

    @classmethod
    def for_model(cls, model_cls: type[BaseModel]) -> "PatchSchema":
        accessors: dict[str, FieldAccessor] = {}
        for name, info in model_cls.model_fields.items():
            accessor = FieldAccessor(name=name, required=info.is_required())
            accessors[_normalize_path(f"/{name}")] = accessor
            if info.alias:
                accessors[_normalize_path(f"/{info.alias}")] = accessor
        return cls(model_cls.__name__, accessors)

    @property
    def paths(self) -> list[str]:
        return sorted({f"/{a.name}" for a in self._accessors.values()})

    def find(self, path: str | None) -> FieldAccessor | None:
        if not path or not path.startswith("/"):
            return None
        return self._accessors.get(_normalize_path(path))

    def resolve(self, path: str, index: int) -> FieldAccessor:
        accessor = self.find(path)
        if accessor is None:
            raise PatchFailure(
                PatchFailureReason.UNKNOWN_PATH,
                path,
                f"The target location '{path}' does not exist on {self.model_name}",
                index,
            )
        return accessor


@lru_cache(maxsize=None)
def patch_schema_for(model_cls: type[BaseModel]) -> PatchSchema:
    """Cached PatchSchema of a model class."""
    return PatchSchema.for_model(model_cls)


# =============================================================================
# Operations
# =============================================================================
def _remove(accessor: FieldAccessor, data: dict[str, Any], path: str, index: int) -> None:
    if accessor.required:
        raise PatchFailure(
            PatchFailureReason.ILLEGAL_REMOVAL,
            path,
            f"'{path}' is required and cannot be removed",
            index,
        )
    accessor.clear(data)


def _resolve_source(
    schema: PatchSchema, data: dict[str, Any], operation: PatchOperation, index: int
) -> FieldAccessor:
    source = schema.find(operation.from_)
    if source is None or source.get(data) is None:
        raise PatchFailure(
            PatchFailureReason.MISSING_SOURCE,
            operation.from_,
            f"The source location '{operation.from_}' does not exist",
            index,
        )
    return source


def json_equal(left: Any, right: Any) -> bool:
    """
    Equality of two JSON values, as the test operation compares them.

    Booleans never equal numbers, and strings never equal numbers. Numbers
    compare by value, so 1 equals 1.0. Arrays compare element-wise in order,
    objects by their member sets.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            json_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            json_equal(value, right[key]) for key, value in left.items()
        )
    if type(left) is not type(right):
        return False
    return left == right


def _apply_operation(
    schema: PatchSchema, data: dict[str, Any], operation: PatchOperation, index: int
) -> None:
    op = operation.op

    if op in (PatchOperationType.ADD, PatchOperationType.REPLACE):
        target = schema.resolve(operation.path, index)
        target.set(data, copy.deepcopy(operation.value))

    elif op is PatchOperationType.REMOVE:
        target = schema.resolve(operation.path, index)
        _remove(target, data, operation.path, index)

    elif op in (PatchOperationType.MOVE, PatchOperationType.COPY):
        # Source first: it must hold a value before anything is written
        source = _resolve_source(schema, data, operation, index)
        target = schema.resolve(operation.path, index)
        value = copy.deepcopy(source.get(data))
        if op is PatchOperationType.MOVE:
            if source is target:
                return
            _remove(source, data, operation.from_, index)
        target.set(data, value)

    elif op is PatchOperationType.TEST:
        target = schema.resolve(operation.path, index)
        current = target.get(data)
        if not json_equal(current, operation.value):
            raise PatchFailure(
                PatchFailureReason.TEST_MISMATCH,
                operation.path,
                f"The current value {current!r} at '{operation.path}' "
                f"is not equal to the test value {operation.value!r}",
                index,
            )


def apply_patch(document: ModelT, operations: Sequence[PatchOperation]) -> ModelT:
    """
    Apply a patch document to a model and return the patched copy.

    Operations run strictly in order; each one sees the result of the
    previous ones. The returned model is NOT validated.

    Args:
        document: The update request to patch (left untouched)
        operations: The patch document

    Returns:
        A new instance of the same model class with the operations applied

    Raises:
        PatchFailure: On the first operation that cannot be applied; no
            effect of the document survives
    """
    schema = patch_schema_for(type(document))
    data = copy.deepcopy(document.model_dump())

    for index, operation in enumerate(operations):
        _apply_operation(schema, data, operation, index)

    logger.debug(f"Applied {len(operations)} patch operations to {schema.model_name}")
    return document.model_copy(update=data)
