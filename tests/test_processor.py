"""
Tests for selection validation, projections and extraction templates.
"""

import pytest

from selectgraph.core.errors import (
    ActionNotFoundError,
    CalculationRequiresArgsError,
    DuplicateFieldError,
    FieldDoesNotSupportNestingError,
    InvalidCalculationArgsError,
    InvalidFieldSelectionError,
    InvalidUnionFieldFormatError,
    RequiresFieldSelectionError,
    UnknownFieldError,
    UnsupportedFieldCombinationError,
)
from selectgraph.core.processor import (
    CalculationLoad,
    LeafTemplate,
    NestedTemplate,
    TupleLeafTemplate,
    UnionBranchTemplate,
)
from selectgraph.core.registry import FieldKind
from selectgraph.core.selection import (
    ArgsSelection,
    LeafSelection,
    NestedSelection,
    UnionMemberSelection,
    parse_selection,
)

from .conftest import ARTICLE_BASELINE


class TestProjection:
    """Tests for select and load computation."""

    def test_no_selection_selects_simple_fields_only(self, process):
        result = process("Article", None)
        assert list(result.projection.select) == ARTICLE_BASELINE
        assert result.projection.load == ()

    def test_relationship_is_loaded(self, process):
        result = process("Article", ["title", {"author": ["name"]}])
        assert result.projection.select == ("title",)
        assert result.projection.load == ("author",)
        assert result.template == (
            LeafTemplate("title"),
            NestedTemplate("author", (LeafTemplate("name"),)),
        )

    def test_nested_relationship_loads(self, process):
        result = process("Article", [{"comments": ["body", {"author": ["name"]}]}])
        assert result.projection.load == (("comments", ("author",)),)

    def test_calculations_and_aggregates_are_loaded(self, process):
        result = process("Article", ["title_upper", "comment_count", {"comment_bodies": ["body"]}])
        assert result.projection.select == ()
        assert result.projection.load == ("title_upper", "comment_count", "comment_bodies")

    def test_embedded_record_is_selected(self, process):
        result = process("Article", [{"address": ["city"]}])
        assert result.projection.select == ("address",)
        assert result.projection.load == ()

    def test_embedded_record_calculation_is_loaded(self, process):
        result = process("Article", [{"previous_addresses": ["city", "full_address"]}])
        assert result.projection.select == ("previous_addresses",)
        assert result.projection.load == (("previous_addresses", ("full_address",)),)
        assert result.template == (
            NestedTemplate(
                "previous_addresses",
                (LeafTemplate("city"), LeafTemplate("full_address")),
            ),
        )

    def test_projection_to_dict(self, process):
        result = process("Article", ["title", {"comments": [{"author": ["name"]}]}])
        assert result.projection.to_dict() == {
            "select": ["title"],
            "load": [{"comments": ["author"]}],
        }


class TestRequiresFieldSelection:
    """Complex fields must be requested with a nested selection."""

    @pytest.mark.parametrize("field_name, kind", [
        ("author", "relationship"),
        ("address", "embedded_resource"),
        ("previous_addresses", "embedded_resource_array"),
        ("location", "tuple"),
        ("metadata", "typed_struct"),
        ("payload", "union_attribute"),
        ("author_card", "calculation_complex"),
        ("latest_comment", "complex_aggregate"),
        ("comment_bodies", "complex_aggregate"),
        ("summary", "calculation_with_args"),
    ])
    def test_bare_complex_field(self, process, field_name, kind):
        with pytest.raises(RequiresFieldSelectionError) as exc_info:
            process("Article", [field_name])
        assert exc_info.value.kind == kind

    @pytest.mark.parametrize("selection", [
        {"author": ["name"]},
        {"address": ["city"]},
        {"location": ["lat"]},
        {"metadata": ["source"]},
        {"payload": ["text"]},
    ])
    def test_nested_selection_succeeds(self, process, selection):
        result = process("Article", [selection])
        assert len(result.template) == 1

    @pytest.mark.parametrize("field_name", ["author", "address", "metadata", "payload", "location"])
    def test_empty_nested_selection(self, process, field_name):
        with pytest.raises(InvalidFieldSelectionError) as exc_info:
            process("Article", [{field_name: []}])
        assert exc_info.value.path == field_name


class TestFieldErrors:
    """Tests for unknown, duplicate and misshapen entries."""

    def test_unknown_field_path(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", ["title", {"author": ["nickname"]}])
        error = exc_info.value
        assert error.field_name == "nickname"
        assert error.container == "Person"
        assert error.path == "author.nickname"

    def test_unknown_field_path_uses_output_format(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", [{"comments": [{"author": ["lastName"]}]}])
        assert exc_info.value.path == "comments.author.lastName"

    def test_duplicate_names(self, process):
        with pytest.raises(DuplicateFieldError) as exc_info:
            process("Article", ["title", "title"])
        assert exc_info.value.field_name == "title"

    def test_duplicate_name_and_nested_object(self, process):
        with pytest.raises(DuplicateFieldError) as exc_info:
            process("Article", ["author", {"author": ["name"]}])
        assert exc_info.value.path == "author"

    def test_duplicates_checked_before_unknown_fields(self, process):
        with pytest.raises(DuplicateFieldError):
            process("Article", ["nope", "nope"])

    def test_nested_duplicates_report_path(self, process):
        with pytest.raises(DuplicateFieldError) as exc_info:
            process("Article", [{"author": ["name", "name"]}])
        assert exc_info.value.path == "author.name"

    def test_simple_field_does_not_nest(self, process):
        with pytest.raises(FieldDoesNotSupportNestingError) as exc_info:
            process("Article", [{"title": ["x"]}])
        assert exc_info.value.path == "title"

    def test_primitive_aggregate_does_not_nest(self, process):
        with pytest.raises(InvalidFieldSelectionError) as exc_info:
            process("Article", [{"comment_count": ["x"]}])
        assert exc_info.value.kind == "aggregate"

    def test_primitive_calculation_does_not_nest(self, process):
        with pytest.raises(InvalidFieldSelectionError) as exc_info:
            process("Article", [{"title_upper": ["x"]}])
        assert exc_info.value.kind == "calculation"


class TestCalculations:
    """Tests for calculations with and without arguments."""

    def test_args_invocation_is_loaded(self, process):
        result = process("Article", [{"summary": {"args": {"length": 10}}}])
        assert result.projection.load == (CalculationLoad("summary", {"length": 10}),)
        assert result.template == (LeafTemplate("summary"),)

    def test_arg_names_are_canonicalized(self, process):
        result = process("Article", [{"summary": {"args": {"maxLength": 5}}}])
        assert result.projection.load[0].args == {"max_length": 5}

    def test_structured_return_with_fields(self, process):
        result = process("Article", [{"related": {"args": {"limit": 2}, "fields": ["title"]}}])
        (load,) = result.projection.load
        assert load.name == "related"
        assert load.args == {"limit": 2}
        assert result.template == (NestedTemplate("related", (LeafTemplate("title"),)),)

    def test_structured_return_nested_loads(self, process):
        result = process(
            "Article",
            [{"related": {"args": {"limit": 2}, "fields": [{"author": ["name"]}]}}],
        )
        assert result.projection.load[0].load == ("author",)

    def test_structured_return_requires_fields(self, process):
        with pytest.raises(RequiresFieldSelectionError) as exc_info:
            process("Article", [{"related": {"args": {"limit": 2}}}])
        assert exc_info.value.kind == "calculation_complex"

    def test_missing_args(self, process):
        with pytest.raises(CalculationRequiresArgsError) as exc_info:
            process("Article", [{"summary": {"fields": []}}])
        assert exc_info.value.path == "summary"

    def test_args_must_be_an_object(self, process):
        with pytest.raises(InvalidCalculationArgsError):
            process("Article", [{"summary": {"args": [10]}}])

    def test_list_instead_of_args_object(self, process):
        with pytest.raises(InvalidCalculationArgsError):
            process("Article", [{"summary": ["x"]}])

    def test_args_on_other_field_kind(self, process):
        with pytest.raises(UnsupportedFieldCombinationError) as exc_info:
            process("Article", [{"title": {"args": {}}}])
        assert exc_info.value.kind == "attribute"

    def test_primitive_args_calculation_rejects_fields(self, process):
        with pytest.raises(InvalidFieldSelectionError):
            process("Article", [{"summary": {"args": {"length": 1}, "fields": ["x"]}}])

    def test_complex_calculation_without_args(self, process):
        result = process("Article", [{"author_card": ["initials"]}])
        assert result.projection.load == ("author_card",)
        assert result.template == (NestedTemplate("author_card", (LeafTemplate("initials"),)),)

    def test_complex_calculation_unknown_field(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", [{"author_card": ["age"]}])
        assert exc_info.value.container == "typed_struct"


class TestComplexAggregates:
    """Tests for first, last and list aggregates."""

    def test_untyped_fields_pass_through(self, process):
        result = process("Article", [{"latest_comment": ["body", {"meta": ["x"]}]}])
        assert result.projection.load == ("latest_comment",)
        assert result.template == (
            NestedTemplate(
                "latest_comment",
                (LeafTemplate("body"), NestedTemplate("meta", (LeafTemplate("x"),))),
            ),
        )

    def test_untyped_duplicates_rejected(self, process):
        with pytest.raises(DuplicateFieldError):
            process("Article", [{"latest_comment": ["body", "body"]}])

    def test_list_of_primitives_requires_selection(self, process):
        with pytest.raises(RequiresFieldSelectionError) as exc_info:
            process("Article", ["comment_bodies"])
        assert exc_info.value.kind == "complex_aggregate"
        assert exc_info.value.path == "commentBodies"

    def test_list_of_primitives_with_selection(self, process):
        result = process("Article", [{"comment_bodies": ["body"]}])
        assert result.projection.load == ("comment_bodies",)
        assert result.template == (NestedTemplate("comment_bodies", (LeafTemplate("body"),)),)


class TestTuplesAndStructs:
    """Tests for tuple and structured record fields."""

    def test_tuple_fields_are_positional(self, process):
        result = process("Article", [{"location": ["lng"]}])
        assert result.projection.select == ("location",)
        assert result.template == (NestedTemplate("location", (TupleLeafTemplate("lng", 1),)),)

    def test_tuple_rejects_nested_objects(self, process):
        with pytest.raises(InvalidFieldSelectionError) as exc_info:
            process("Article", [{"location": [{"lat": ["x"]}]}])
        assert exc_info.value.kind == "tuple"
        assert exc_info.value.path == "location.lat"

    def test_tuple_unknown_field(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", [{"location": ["alt"]}])
        assert exc_info.value.container == "tuple"

    def test_struct_fields(self, process):
        result = process("Article", [{"metadata": ["source", "word_count"]}])
        assert result.projection.select == ("metadata",)
        assert result.template == (
            NestedTemplate("metadata", (LeafTemplate("source"), LeafTemplate("word_count"))),
        )

    def test_struct_unknown_field(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", [{"metadata": ["author"]}])
        assert exc_info.value.container == "typed_struct"
        assert exc_info.value.path == "metadata.author"


class TestUnions:
    """Tests for tagged union member selection."""

    def test_member_with_fields(self, process):
        result = process("Article", [{"payload": [{"image": ["url"]}]}])
        assert result.projection.select == ("payload",)
        assert result.template == (
            NestedTemplate("payload", (UnionBranchTemplate("image", (LeafTemplate("url"),)),)),
        )

    def test_primitive_member_by_tag(self, process):
        result = process("Article", [{"payload": ["text"]}])
        assert result.template == (NestedTemplate("payload", (UnionBranchTemplate("text"),)),)

    def test_single_object_value(self, process):
        result = process("Article", [{"payload": {"image": ["width"]}}])
        assert result.template[0].children == (
            UnionBranchTemplate("image", (LeafTemplate("width"),)),
        )

    def test_structured_member_requires_fields(self, process):
        with pytest.raises(RequiresFieldSelectionError) as exc_info:
            process("Article", [{"payload": ["image"]}])
        assert exc_info.value.kind == "complex_type"
        assert exc_info.value.path == "payload.image"

    def test_unknown_member(self, process):
        with pytest.raises(UnknownFieldError) as exc_info:
            process("Article", [{"payload": ["video"]}])
        assert exc_info.value.container == "union_attribute"
        assert exc_info.value.path == "payload.video"

    def test_duplicate_member(self, process):
        with pytest.raises(DuplicateFieldError) as exc_info:
            process("Article", [{"payload": ["text", "text"]}])
        assert exc_info.value.path == "payload.text"

    def test_args_member_is_invalid_format(self, process):
        with pytest.raises(InvalidUnionFieldFormatError) as exc_info:
            process("Article", [{"payload": [{"image": {"args": {}}}]}])
        assert exc_info.value.path == "payload"

    def test_entity_member_loads(self, process):
        result = process("Article", [{"payload": [{"mention": ["name", {"articles": ["title"]}]}]}])
        assert result.projection.select == ("payload",)
        assert result.projection.load == (("payload", (("mention", ("articles",)),)),)

    def test_explicit_member_nodes(self, processor):
        nodes = (NestedSelection("payload", (UnionMemberSelection("text"),)),)
        result = processor.process("Article", nodes)
        assert result.template == (NestedTemplate("payload", (UnionBranchTemplate("text"),)),)


class TestActions:
    """Tests for the root return type of actions."""

    def test_unknown_action(self, processor):
        with pytest.raises(ActionNotFoundError):
            processor.process("Article", ["title"], action="archive")

    @pytest.mark.parametrize("action", ["list", "get", "create"])
    def test_entity_actions_use_entity_schema(self, processor, action):
        with pytest.raises(UnknownFieldError):
            processor.process("Article", ["nope"], action=action)

    def test_primitive_return_passes_through(self, processor):
        result = processor.process("Article", ["anything"], action="publish")
        assert result.projection.select == ()
        assert result.template == (LeafTemplate("anything"),)

    def test_untyped_return_passes_through(self, processor):
        result = processor.process("Article", [{"a": ["b"]}], action="stats")
        assert result.template == (NestedTemplate("a", (LeafTemplate("b"),)),)

    def test_resource_array_return_is_validated(self, processor):
        result = processor.process("Article", ["title", {"author": ["name"]}], action="search")
        assert result.projection.select == ("title",)
        assert result.projection.load == ("author",)
        with pytest.raises(UnknownFieldError):
            processor.process("Article", ["nope"], action="search")


class TestDispatch:
    """Every field kind has a nested selection rule."""

    def test_every_kind_has_a_nested_handler(self, processor):
        assert set(processor._nested_handlers) == set(FieldKind)

    def test_raw_selection_is_parsed(self, processor):
        result = processor.process("Article", ["title", {"author": ["name"]}])
        assert result.projection.load == ("author",)

    def test_args_nodes_accepted(self, processor):
        nodes = (ArgsSelection("summary", {"length": 3}),)
        result = processor.process("Article", nodes)
        assert result.projection.load == (CalculationLoad("summary", {"length": 3}),)

    def test_parsed_nodes_accepted(self, processor, formatter):
        nodes = parse_selection(["title"], formatter)
        assert processor.process("Article", nodes).template == (LeafTemplate("title"),)
        assert isinstance(nodes[0], LeafSelection)
