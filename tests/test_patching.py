"""
Tests for the Patch Engine

These tests call app.services.patching directly, without HTTP.
"""

import pytest
from pydantic import BaseModel, ValidationError

from app.schemas import AuthorForUpdate, PatchOperation, PatchOperationType
from app.services.patching import (
    PatchFailure,
    PatchFailureReason,
    apply_patch,
    json_equal,
    patch_schema_for,
)


def op(**kwargs) -> PatchOperation:
    """Build an operation the way a request body would ("from" included)."""
    return PatchOperation.model_validate(kwargs)


@pytest.fixture
def author() -> AuthorForUpdate:
    return AuthorForUpdate(first_name="George", last_name="Orwell")


class Draft(BaseModel):
    """A model with an optional field, so remove can succeed."""

    title: str
    subtitle: str | None = None


class TestApplyPatch:
    def test_empty_document_is_identity(self, author):
        patched = apply_patch(author, [])

        assert patched == author
        assert patched is not author

    def test_original_is_not_modified(self, author):
        apply_patch(author, [op(op="replace", path="/first_name", value="Eric")])

        assert author.first_name == "George"

    def test_replace(self, author):
        patched = apply_patch(author, [op(op="replace", path="/first_name", value="Eric")])

        assert patched.first_name == "Eric"
        assert patched.last_name == "Orwell"

    def test_add_sets_value(self, author):
        patched = apply_patch(author, [op(op="add", path="/last_name", value="Blair")])

        assert patched.last_name == "Blair"

    def test_operations_apply_in_order(self, author):
        patched = apply_patch(
            author,
            [
                op(op="replace", path="/first_name", value="Eric"),
                op(op="replace", path="/first_name", value="Arthur"),
            ],
        )

        assert patched.first_name == "Arthur"

    def test_swapped_replaces_give_swapped_result(self, author):
        to_a = op(op="replace", path="/first_name", value="A")
        to_b = op(op="replace", path="/first_name", value="B")

        assert apply_patch(author, [to_a, to_b]).first_name == "B"
        assert apply_patch(author, [to_b, to_a]).first_name == "A"

    def test_order_changes_result(self, author):
        """test-then-replace succeeds; replace-then-test fails."""
        operations = [
            op(op="test", path="/first_name", value="George"),
            op(op="replace", path="/first_name", value="Eric"),
        ]

        assert apply_patch(author, operations).first_name == "Eric"
        with pytest.raises(PatchFailure):
            apply_patch(author, list(reversed(operations)))

    def test_path_matching_ignores_case_and_underscores(self, author):
        patched = apply_patch(
            author,
            [
                op(op="replace", path="/FirstName", value="Eric"),
                op(op="replace", path="/lastname", value="Blair"),
            ],
        )

        assert (patched.first_name, patched.last_name) == ("Eric", "Blair")

    def test_result_is_not_validated(self, author):
        """Validation is left to the caller."""
        patched = apply_patch(author, [op(op="replace", path="/first_name", value="")])

        assert patched.first_name == ""

    def test_copy(self, author):
        patched = apply_patch(author, [op(op="copy", **{"from": "/last_name"}, path="/first_name")])

        assert patched.first_name == "Orwell"
        assert patched.last_name == "Orwell"

    def test_move_to_optional_source(self):
        draft = Draft(title="Animal Farm", subtitle="A Fairy Story")

        patched = apply_patch(draft, [op(op="move", **{"from": "/subtitle"}, path="/title")])

        assert patched.title == "A Fairy Story"
        assert patched.subtitle is None

    def test_move_onto_itself_is_noop(self, author):
        patched = apply_patch(author, [op(op="move", **{"from": "/first_name"}, path="/first_name")])

        assert patched == author

    def test_remove_optional_field(self):
        draft = Draft(title="Animal Farm", subtitle="A Fairy Story")

        patched = apply_patch(draft, [op(op="remove", path="/subtitle")])

        assert patched.subtitle is None

    def test_values_are_copied(self):
        """Later changes to an operation's value do not leak into the result."""
        value = ["a", "b"]
        operation = op(op="replace", path="/subtitle", value=value)

        class Tagged(BaseModel):
            subtitle: list[str] | None = None

        patched = apply_patch(Tagged(), [operation])
        operation.value.append("c")

        assert patched.subtitle == ["a", "b"]


class TestPatchFailures:
    def test_test_mismatch(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="test", path="/last_name", value="Blair")])

        assert exc_info.value.reason is PatchFailureReason.TEST_MISMATCH
        assert exc_info.value.path == "/last_name"
        assert exc_info.value.index == 0

    def test_unknown_path(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="replace", path="/nickname", value="x")])

        assert exc_info.value.reason is PatchFailureReason.UNKNOWN_PATH

    @pytest.mark.parametrize("path", ["first_name", "/first_name/0", ""])
    def test_malformed_paths_are_unknown(self, author, path):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="replace", path=path, value="x")])

        assert exc_info.value.reason is PatchFailureReason.UNKNOWN_PATH

    def test_remove_required_field(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="remove", path="/first_name")])

        assert exc_info.value.reason is PatchFailureReason.ILLEGAL_REMOVAL

    def test_move_from_required_field(self, author):
        """Moving away from a required field would leave it empty."""
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="move", **{"from": "/first_name"}, path="/last_name")])

        assert exc_info.value.reason is PatchFailureReason.ILLEGAL_REMOVAL

    def test_copy_from_unknown_source(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="copy", **{"from": "/nickname"}, path="/first_name")])

        assert exc_info.value.reason is PatchFailureReason.MISSING_SOURCE
        assert exc_info.value.path == "/nickname"

    def test_copy_without_source(self, author):
        """Operations built without validation still fail in the engine."""
        operation = PatchOperation.model_construct(op=PatchOperationType.COPY, path="/first_name")

        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [operation])

        assert exc_info.value.reason is PatchFailureReason.MISSING_SOURCE

    def test_move_from_empty_source(self):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(Draft(title="Animal Farm"), [op(op="move", **{"from": "/subtitle"}, path="/title")])

        assert exc_info.value.reason is PatchFailureReason.MISSING_SOURCE

    def test_failure_reports_index(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(
                author,
                [
                    op(op="replace", path="/first_name", value="Eric"),
                    op(op="replace", path="/last_name", value="Blair"),
                    op(op="remove", path="/last_name"),
                ],
            )

        assert exc_info.value.index == 2

    def test_failure_has_no_partial_effect(self, author):
        with pytest.raises(PatchFailure):
            apply_patch(
                author,
                [
                    op(op="replace", path="/first_name", value="Eric"),
                    op(op="test", path="/first_name", value="George"),
                ],
            )

        assert author.first_name == "George"

    def test_to_dict(self, author):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(author, [op(op="test", path="/first_name", value="Eric")])

        data = exc_info.value.to_dict()
        assert data["reason"] == "TestMismatch"
        assert data["path"] == "/first_name"
        assert data["index"] == 0
        assert "Eric" in data["message"]


class TestPatchSchema:
    def test_schema_is_cached_per_model(self):
        assert patch_schema_for(AuthorForUpdate) is patch_schema_for(AuthorForUpdate)

    def test_paths(self):
        assert patch_schema_for(AuthorForUpdate).paths == ["/first_name", "/last_name"]

    def test_required_flags(self):
        schema = patch_schema_for(Draft)

        assert schema.find("/title").required is True
        assert schema.find("/subtitle").required is False


class Counted(BaseModel):
    """A model with a numeric field for test comparisons."""

    count: int | bool | None = None


class TestJsonComparison:
    def test_boolean_does_not_match_number(self):
        with pytest.raises(PatchFailure) as exc_info:
            apply_patch(Counted(count=1), [op(op="test", path="/count", value=True)])

        assert exc_info.value.reason is PatchFailureReason.TEST_MISMATCH

    def test_number_does_not_match_string(self):
        with pytest.raises(PatchFailure):
            apply_patch(Counted(count=1), [op(op="test", path="/count", value="1")])

    def test_numbers_compare_by_value(self):
        patched = apply_patch(Counted(count=1), [op(op="test", path="/count", value=1.0)])

        assert patched.count == 1

    def test_null_matches_null(self):
        patched = apply_patch(Counted(), [op(op="test", path="/count", value=None)])

        assert patched.count is None

    @pytest.mark.parametrize(
        "left, right, expected",
        [
            ([1, 2], [1, 2], True),
            ([1, 2], [2, 1], False),
            ([True], [1], False),
            ({"a": 1, "b": [False]}, {"b": [False], "a": 1.0}, True),
            ({"a": 1}, {"a": 1, "b": 2}, False),
            ("x", "x", True),
            (None, 0, False),
        ],
    )
    def test_json_equal(self, left, right, expected):
        assert json_equal(left, right) is expected


class TestPatchOperationSchema:
    @pytest.mark.parametrize("kind", ["add", "replace", "test"])
    def test_value_required(self, kind):
        with pytest.raises(ValidationError) as exc_info:
            op(op=kind, path="/first_name")

        assert exc_info.value.errors()[0]["type"] == "patch_operation_incomplete"

    def test_explicit_null_is_a_value(self):
        operation = op(op="replace", path="/first_name", value=None)

        assert operation.value is None

    @pytest.mark.parametrize("kind", ["move", "copy"])
    def test_source_required(self, kind):
        with pytest.raises(ValidationError) as exc_info:
            op(op=kind, path="/first_name")

        assert exc_info.value.errors()[0]["type"] == "patch_operation_incomplete"

    def test_remove_needs_no_operands(self):
        assert op(op="remove", path="/first_name").from_ is None
