# tests/test_strategy.py
"""
Tests for per-member strategy resolution and descriptor assembly.
"""

import pytest

from autoequality.capability import GenerationContext
from autoequality.errors import ErrorCodes, ErrorReporter, GenerationCancelled
from autoequality.model import EqualityStrategy, TypeKind
from autoequality.strategy import (
    build_descriptor,
    data_members,
    is_case_insensitive,
    resolve_strategy,
    strategy_for_special_type,
    strategy_for_type,
    strategy_from_annotation,
    type_kind_of,
)
from autoequality.symbols import AttributeData, MemberSymbol, SpecialType, TypeSymbol


def _annotated(kind):
    return (AttributeData("AutoEqualityMember", (kind,)),)


class TestTypeDefaults:

    @pytest.mark.parametrize("special", [
        SpecialType.INT16, SpecialType.INT32, SpecialType.INT64,
        SpecialType.UINT16, SpecialType.UINT32, SpecialType.UINT64,
        SpecialType.INTPTR, SpecialType.UINTPTR,
    ])
    def test_integers_use_operator(self, special):
        assert strategy_for_special_type(special) is EqualityStrategy.OPERATOR_EQUALITY

    @pytest.mark.parametrize("special", [
        SpecialType.BYTE, SpecialType.SBYTE, SpecialType.BOOLEAN, SpecialType.CHAR,
        SpecialType.DOUBLE, SpecialType.SINGLE, SpecialType.DECIMAL,
    ])
    def test_other_primitives_have_no_special_default(self, special):
        assert strategy_for_special_type(special) is None

    def test_string_ordinal_and_ignore_case(self):
        assert strategy_for_special_type(SpecialType.STRING) is EqualityStrategy.STRING_ORDINAL
        assert strategy_for_special_type(SpecialType.STRING, case_insensitive=True) is (
            EqualityStrategy.STRING_ORDINAL_IGNORE_CASE
        )

    def test_enumerables_use_sequence_equal(self, compilation, context, core):
        list_of_int = core("System.Collections.Generic.List`1").construct(core("int"))
        assert strategy_for_type(list_of_int, context) is EqualityStrategy.SEQUENCE_EQUAL
        array = compilation.array_type(core("string"))
        assert strategy_for_type(array, context) is EqualityStrategy.SEQUENCE_EQUAL

    def test_string_is_not_a_sequence(self, context, core):
        assert strategy_for_type(core("string"), context) is EqualityStrategy.STRING_ORDINAL

    def test_everything_else_uses_generic_default(self, context, core):
        assert strategy_for_type(core("double"), context) is EqualityStrategy.GENERIC_DEFAULT
        assert strategy_for_type(core("System.Guid"), context) is EqualityStrategy.GENERIC_DEFAULT
        opaque = TypeSymbol("Mystery", kind=TypeKind.UNKNOWN)
        assert strategy_for_type(opaque, context) is EqualityStrategy.GENERIC_DEFAULT


class TestAnnotations:

    def test_no_annotation(self, core):
        assert strategy_from_annotation(MemberSymbol.of_field("x", core("int"))) is None

    def test_annotation_wins_over_type(self, context, core):
        member = MemberSymbol.of_field(
            "Name", core("string"), attributes=_annotated("AutoEqualityKind.CurrentCulture")
        )
        assert resolve_strategy(member, context, case_insensitive=True) is (
            EqualityStrategy.STRING_CURRENT_CULTURE
        )

    def test_annotation_none_suppresses(self, context, core):
        member = MemberSymbol.of_field("Cache", core("int"), attributes=_annotated(0))
        assert resolve_strategy(member, context) is EqualityStrategy.SUPPRESSED

    def test_named_kind_argument(self, context, core):
        member = MemberSymbol.of_field(
            "x", core("int"), attributes=(AttributeData("AutoEqualityMember", (), {"Kind": 1}),)
        )
        assert resolve_strategy(member, context) is EqualityStrategy.GENERIC_DEFAULT

    def test_annotation_on_unresolved_type(self, context):
        member = MemberSymbol.of_field("x", None, attributes=_annotated("Operator"))
        assert resolve_strategy(member, context) is EqualityStrategy.OPERATOR_EQUALITY
        assert resolve_strategy(MemberSymbol.of_field("y", None), context) is (
            EqualityStrategy.GENERIC_DEFAULT
        )

    def test_invalid_annotation_degrades_and_reports(self, context, core, caplog):
        reporter = ErrorReporter()
        member = MemberSymbol.of_field("x", core("int"), attributes=_annotated(42))
        assert resolve_strategy(member, context, reporter=reporter) is (
            EqualityStrategy.GENERIC_DEFAULT
        )
        assert [m.code for m in reporter] == [ErrorCodes.INVALID_ANNOTATION]
        assert not reporter.has_errors()
        assert "invalid AutoEqualityMember kind" in caplog.text


class TestDataMembers:

    def test_eligibility(self, core, declare):
        int_type = core("int")
        symbol = declare(
            "Sample",
            MemberSymbol.of_field("field", int_type),
            MemberSymbol.of_property("ReadWrite", int_type),
            MemberSymbol.of_property("Derived", int_type, setter=False),
            MemberSymbol.of_property(
                "AnnotatedReadOnly", int_type, setter=False, attributes=_annotated(1)
            ),
            MemberSymbol.of_property("WriteOnly", int_type, getter=False),
            MemberSymbol.of_field("Shared", int_type, is_static=True),
            MemberSymbol.of_field("Limit", int_type, is_const=True),
        )
        assert [m.name for m in data_members(symbol)] == ["field", "ReadWrite", "AnnotatedReadOnly"]

    def test_type_kind_of(self, compilation, core):
        assert type_kind_of(core("int")) is TypeKind.PRIMITIVE
        assert type_kind_of(core("System.DateTime")) is TypeKind.VALUE_AGGREGATE
        assert type_kind_of(core("string")) is TypeKind.REFERENCE_AGGREGATE
        assert type_kind_of(core("System.Collections.Generic.IList`1")) is TypeKind.REFERENCE_AGGREGATE
        assert type_kind_of(compilation.array_type(core("int"))) is TypeKind.REFERENCE_AGGREGATE
        assert type_kind_of(None) is TypeKind.UNKNOWN

    @pytest.mark.parametrize("attribute, expected", [
        (AttributeData("AutoEquality"), False),
        (AttributeData("AutoEquality", (True,)), True),
        (AttributeData("AutoEquality", (), {"CaseInsensitive": True}), True),
        (AttributeData("AutoEquality", (), {"CaseInsensitive": "true"}), True),
        (AttributeData("AutoEquality", (), {"CaseInsensitive": False}), False),
    ])
    def test_case_insensitive_flag(self, attribute, expected):
        assert is_case_insensitive(TypeSymbol("T", attributes=(attribute,))) is expected

    def test_case_insensitive_without_annotation(self):
        assert not is_case_insensitive(TypeSymbol("T"))


class TestBuildDescriptor:

    def test_pair(self, context, core, declare):
        symbol = declare(
            "Pair",
            MemberSymbol.of_field("First", core("int")),
            MemberSymbol.of_property("Second", core("string")),
        )
        descriptor = build_descriptor(symbol, context)
        assert descriptor.namespace == "Demo"
        assert descriptor.name == "Pair"
        assert descriptor.is_reference_type
        assert descriptor.hashing_mode_available
        assert [(m.name, m.type_kind, m.type_full_name, m.strategy) for m in descriptor.members] == [
            ("First", TypeKind.PRIMITIVE, "int", EqualityStrategy.OPERATOR_EQUALITY),
            ("Second", TypeKind.REFERENCE_AGGREGATE, "string", EqualityStrategy.STRING_ORDINAL),
        ]

    def test_struct_on_legacy_runtime(self, legacy_compilation):
        context = GenerationContext(legacy_compilation)
        int_type = legacy_compilation.get_type_by_metadata_name("System.Int32")
        symbol = TypeSymbol(
            "Point", None, TypeKind.VALUE_AGGREGATE,
            members=[MemberSymbol.of_field("X", int_type)],
        )
        descriptor = build_descriptor(symbol, context)
        assert descriptor.namespace is None
        assert not descriptor.is_reference_type
        assert not descriptor.hashing_mode_available

    def test_case_insensitive_strings(self, context, core, declare):
        symbol = declare("Name", MemberSymbol.of_property("Value", core("string")))
        descriptor = build_descriptor(symbol, context, case_insensitive=True)
        assert descriptor.members[0].strategy is EqualityStrategy.STRING_ORDINAL_IGNORE_CASE

    def test_suppressed_members_are_kept(self, context, core, declare):
        symbol = declare(
            "Cached",
            MemberSymbol.of_field("Value", core("int")),
            MemberSymbol.of_field("Cache", core("int"), attributes=_annotated("None")),
        )
        descriptor = build_descriptor(symbol, context)
        assert [m.name for m in descriptor.members] == ["Value", "Cache"]
        assert [m.name for m in descriptor.retained_members()] == ["Value"]

    def test_no_data_members(self, context, declare):
        descriptor = build_descriptor(declare("Empty"), context)
        assert descriptor.members == ()

    def test_interface_is_skipped(self, context):
        reporter = ErrorReporter()
        symbol = TypeSymbol("IShape", "Demo", is_interface=True)
        assert build_descriptor(symbol, context, reporter=reporter) is None
        assert [m.code for m in reporter] == [ErrorCodes.NOT_A_DATA_TYPE]

    def test_cancellation_between_members(self, context, core, declare):
        symbol = declare(
            "Pair",
            MemberSymbol.of_field("First", core("int")),
            MemberSymbol.of_field("Second", core("int")),
        )
        with pytest.raises(GenerationCancelled):
            build_descriptor(symbol, context, cancel=lambda: True)

    def test_deterministic(self, context, core, declare):
        symbol = declare(
            "Pair",
            MemberSymbol.of_field("First", core("int")),
            MemberSymbol.of_field("Second", core("string")),
        )
        first = build_descriptor(symbol, context)
        second = build_descriptor(symbol, context)
        assert first.members == second.members
