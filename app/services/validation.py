"""
Validation Classifier

Decides whether a rejected request was structurally malformed (400) or
well-formed but semantically invalid (422).

The Rule
========
A request declares a number of input parameters (path, query, header and
cookie values plus the body). Each one is either bound (present and of the
right shape) or not.

- Some field errors, every parameter bound  -> SemanticallyInvalid (422)
- Any parameter not bound, errors or not     -> StructurallyMalformed (400)

Only the counts matter; which field failed, or how many, does not.

Binding Analysis
================
FastAPI reports every failure as one flat list of errors. A parameter is
counted as not bound when one of its errors says the value is absent or
could not be parsed into the declared type at all:

- the parameter itself is missing (a missing field *inside* the body is a
  validation error, not a binding failure)
- the body is not JSON
- type coercion failed (string_type, uuid_parsing, enum, ...)
- an element of an array body lacks a required member, or a patch
  operation lacks the value or source its op needs

Constraint violations (too short, too long, custom validators) leave the
parameter bound.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

BODY = "body"
PARAMETER_SOURCES = frozenset({"path", "query", "header", "cookie", BODY})

# Raised by PatchOperation when an operation lacks the member its op needs
INCOMPLETE_PATCH_OPERATION = "patch_operation_incomplete"

# Error types raised when a value could not be converted to its declared type
STRUCTURAL_ERROR_TYPES = frozenset({
    INCOMPLETE_PATCH_OPERATION,
    "json_invalid",
    "enum",
    "literal_error",
    "union_tag_invalid",
    "union_tag_not_found",
    "is_instance_of",
})


class ErrorCategory(str, Enum):
    SEMANTICALLY_INVALID = "SemanticallyInvalid"
    STRUCTURALLY_MALFORMED = "StructurallyMalformed"

    @property
    def status_code(self) -> int:
        if self is ErrorCategory.SEMANTICALLY_INVALID:
            return 422
        return 400


def classify(
    errors: Mapping[str, Sequence[str]],
    bound_parameter_count: int,
    expected_parameter_count: int,
) -> ErrorCategory | None:
    """
    Classify a rejected request.

    Returns None for a request with no errors and every parameter bound;
    callers only invoke this on a failure path.

    Example:
        >>> classify({"firstname": ["required"]}, 2, 2)
        <ErrorCategory.SEMANTICALLY_INVALID: 'SemanticallyInvalid'>
        >>> classify({}, 1, 2)
        <ErrorCategory.STRUCTURALLY_MALFORMED: 'StructurallyMalformed'>
    """
    all_bound = bound_parameter_count == expected_parameter_count
    if errors and all_bound:
        return ErrorCategory.SEMANTICALLY_INVALID
    if not errors and all_bound:
        return None
    # A parameter that silently failed to bind is still malformed input
    return ErrorCategory.STRUCTURALLY_MALFORMED


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Field errors of a rejected request plus its binding counts.

    raw_errors keeps the (loc, msg, type) triples as reported, for
    responses that echo binding failures.
    """

    errors: Mapping[str, tuple[str, ...]]
    bound_parameter_count: int
    expected_parameter_count: int
    raw_errors: tuple[dict[str, Any], ...] = field(default=())

    @property
    def category(self) -> ErrorCategory | None:
        return classify(
            self.errors,
            self.bound_parameter_count,
            self.expected_parameter_count,
        )


class InvalidRequest(Exception):
    """Raised by route handlers when input fails validation after binding."""

    def __init__(self, outcome: ValidationOutcome) -> None:
        self.outcome = outcome
        super().__init__(f"Request failed validation: {dict(outcome.errors)}")


# =============================================================================
# Binding Analysis
# =============================================================================
Parameter = tuple[str, str | None]


def parameter_of(loc: Sequence[Any]) -> Parameter:
    """
    The input parameter an error location belongs to.

    The request body counts as a single parameter.
    """
    if not loc or loc[0] == BODY:
        return (BODY, None)
    source = str(loc[0])
    name = str(loc[1]) if len(loc) > 1 else None
    return (source, name)


def is_structural_error(error: Mapping[str, Any]) -> bool:
    """True when the error means its parameter could not be bound at all."""
    error_type = str(error.get("type", ""))
    loc = tuple(error.get("loc", ()))

    if error_type == "missing":
        root_length = 1 if not loc or loc[0] == BODY else 2
        if len(loc) <= root_length:
            return True
        # A member missing from an element of an array body (a patch
        # operation without op or path) leaves the element uninterpretable
        return loc[0] == BODY and len(loc) == 3 and isinstance(loc[1], int)

    return (
        error_type in STRUCTURAL_ERROR_TYPES
        or error_type.endswith("_type")
        or error_type.endswith("_parsing")
    )


def field_key(loc: Sequence[Any], error_type: str = "") -> str:
    """Dotted field path of an error, without its source prefix."""
    if error_type == "json_invalid":
        return BODY
    parts = list(loc)
    if parts and parts[0] in PARAMETER_SOURCES:
        source, parts = parts[0], parts[1:]
        if not parts:
            return str(source)
    return ".".join(str(p) for p in parts)


def _collect(errors: Iterable[Mapping[str, Any]]) -> tuple[dict[str, list[str]], list[dict[str, Any]]]:
    field_errors: dict[str, list[str]] = {}
    raw: list[dict[str, Any]] = []
    for error in errors:
        loc = list(error.get("loc", ()))
        error_type = str(error.get("type", ""))
        message = str(error.get("msg", ""))
        field_errors.setdefault(field_key(loc, error_type), []).append(message)
        raw.append({"loc": loc, "msg": message, "type": error_type})
    return field_errors, raw


def _freeze(field_errors: dict[str, list[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in field_errors.items()})


def outcome_from_request_errors(
    errors: Sequence[Mapping[str, Any]],
    expected_parameters: Iterable[Parameter],
) -> ValidationOutcome:
    """
    Build a ValidationOutcome from FastAPI request validation errors.

    Args:
        errors: RequestValidationError.errors()
        expected_parameters: (source, name) of every parameter the endpoint
            declares; the body is ("body", None)
    """
    expected = set(expected_parameters)
    unbound: set[Parameter] = set()

    for error in errors:
        parameter = parameter_of(tuple(error.get("loc", ())))
        # Errors can only come from declared parameters
        expected.add(parameter)
        if is_structural_error(error):
            unbound.add(parameter)

    field_errors, raw = _collect(errors)
    return ValidationOutcome(
        errors=_freeze(field_errors),
        bound_parameter_count=len(expected) - len(unbound),
        expected_parameter_count=len(expected),
        raw_errors=tuple(raw),
    )


def outcome_from_model_errors(errors: Sequence[Mapping[str, Any]]) -> ValidationOutcome:
    """
    Build a ValidationOutcome for a model validated after binding.

    The model came from a request whose input was already bound, so the
    outcome always reports its single input as bound.
    """
    field_errors, raw = _collect(errors)
    return ValidationOutcome(
        errors=_freeze(field_errors),
        bound_parameter_count=1,
        expected_parameter_count=1,
        raw_errors=tuple(raw),
    )


def validate_patched(model_cls: type[ModelT], patched: BaseModel) -> ModelT:
    """
    Re-validate a patched update request.

    Raises:
        InvalidRequest: With a SemanticallyInvalid outcome when the patched
            values break the model's rules
    """
    try:
        return model_cls.model_validate(patched.model_dump())
    except ValidationError as exc:
        outcome = outcome_from_model_errors(exc.errors())
        logger.info(f"Patched {model_cls.__name__} failed validation: {dict(outcome.errors)}")
        raise InvalidRequest(outcome) from exc
