# tests/test_frontend.py
"""
Tests for the C# declaration front end: grammar coverage, declaration
extraction, binding and diagnostics.
"""

import pytest

from autoequality.capability import GenerationContext
from autoequality.errors import (
    ErrorCodes,
    ErrorReporter,
    ErrorSeverity,
    FrontEndSyntaxError,
)
from autoequality.frontend import load_compilation, parse_source, read_sources
from autoequality.model import EqualityStrategy as S
from autoequality.model import TypeKind
from autoequality.strategy import build_descriptor, is_case_insensitive


def _descriptor(compilation, full_name, case_insensitive=False):
    symbol = compilation.get_type_by_metadata_name(full_name)
    assert symbol is not None, full_name
    return build_descriptor(symbol, GenerationContext(compilation), case_insensitive)


def _members(descriptor):
    return [(m.name, m.type_kind, m.type_full_name, m.strategy) for m in descriptor.members]


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════

class TestParseSource:

    def test_file_scoped_namespace(self, person_source):
        source = parse_source(person_source, "Person.cs")
        assert source.filename == "Person.cs"
        assert source.usings == ("System", "System.Collections.Generic")
        assert [(t.keyword, t.full_name) for t in source.types] == [
            ("enum", "Demo.Models.Color"),
            ("class", "Demo.Models.Person"),
        ]

    def test_members_and_modifiers(self, person_source):
        person = parse_source(person_source).types[1]
        assert person.is_partial
        assert [m.name for m in person.members] == [
            "MaxAge", "Count", "_id", "Name", "Nickname", "Age",
            "Tags", "LastSeen", "Scores", "Favorite", "Display",
        ]
        by_name = {m.name: m for m in person.members}
        assert "const" in by_name["MaxAge"].modifiers
        assert "static" in by_name["Count"].modifiers
        assert not by_name["_id"].is_property
        assert by_name["Nickname"].has_setter
        assert not by_name["Tags"].has_setter
        assert not by_name["Display"].has_setter

    def test_type_references(self, person_source):
        person = parse_source(person_source).types[1]
        by_name = {m.name: m.type_ref for m in person.members}
        assert by_name["Nickname"].suffixes == ("?",)
        assert by_name["Scores"].suffixes == (1,)
        assert by_name["Tags"].name == "List"
        assert [a.name for a in by_name["Tags"].arguments] == ["string"]

    def test_attributes(self, person_source):
        person = parse_source(person_source).types[1]
        [attribute] = person.attributes
        assert attribute.name == "AutoEquality"
        assert attribute.named_arguments == {"CaseInsensitive": True}
        last_seen = next(m for m in person.members if m.name == "LastSeen")
        assert last_seen.attributes[0].arguments == ("AutoEqualityKind.None",)

    def test_block_namespace_and_multiple_declarators(self, point_source):
        [point] = parse_source(point_source).types
        assert point.keyword == "struct"
        assert point.namespace == "Demo"
        assert [m.name for m in point.members] == ["X", "Y", "Weights"]

    def test_nested_namespaces(self):
        source = parse_source(
            "namespace Outer { namespace Inner { class A { } } class B { } }"
        )
        assert [t.full_name for t in source.types] == ["Outer.Inner.A", "Outer.B"]

    def test_generics_bases_and_constraints(self):
        [box] = parse_source(
            "public sealed class Box<T> : Base, IComparable<Box<T>> where T : class\n"
            "{\n"
            "    public Dictionary<string, List<T>> Map = new();\n"
            "}\n"
        ).types
        assert box.type_parameters == ("T",)
        assert [b.name for b in box.bases] == ["Base", "IComparable"]
        [member] = box.members
        assert member.type_ref.written == "Dictionary<string, List<T>>"

    def test_skipped_members(self):
        [widget] = parse_source(
            "class Widget\n"
            "{\n"
            "    public event EventHandler Changed;\n"
            "    public int this[int i] => i;\n"
            "    public int Compute(int a, int b) { return a < b ? a : b; }\n"
            "    private static readonly Func<int, int> Square = x => x * x;\n"
            "    public int Size;\n"
            "    delegate void Callback(int value);\n"
            "    class Nested { public int Inner; }\n"
            "}\n"
        ).types
        assert [m.name for m in widget.members] == ["Square", "Size"]
        assert [n.name for n in widget.nested] == ["Nested"]

    def test_comments_and_preprocessor(self):
        [plain] = parse_source(
            "// leading\n"
            "#region Models\n"
            "/* block */ class Plain { int /* inline */ Value; }\n"
            "#endregion\n"
        ).types
        assert [m.name for m in plain.members] == ["Value"]

    def test_syntax_error_points_at_declaration(self):
        text = "namespace A;\n\npublic class Broken\n{\n    public int X\n}\n"
        with pytest.raises(FrontEndSyntaxError) as info:
            parse_source(text, "Broken.cs")
        error = info.value
        assert error.code == ErrorCodes.SYNTAX_ERROR
        assert error.span.file == "Broken.cs"
        assert error.span.line == 3
        assert "Broken.cs:3:" in error.to_gcc_format()

    def test_records_are_unsupported(self):
        with pytest.raises(FrontEndSyntaxError):
            parse_source("public record Person(string Name);")

    def test_read_sources(self, tmp_path, point_source):
        path = tmp_path / "Point.cs"
        path.write_text(point_source, encoding="utf-8")
        assert read_sources([path]) == [(str(path), point_source)]


# ═══════════════════════════════════════════════════════════════════════════
# BINDING
# ═══════════════════════════════════════════════════════════════════════════

class TestLoadCompilation:

    def test_person(self, person_source):
        compilation = load_compilation({"Person.cs": person_source})
        person = compilation.get_type_by_metadata_name("Demo.Models.Person")
        assert is_case_insensitive(person)

        descriptor = _descriptor(compilation, "Demo.Models.Person", case_insensitive=True)
        assert descriptor.qualified_name == "Demo.Models.Person"
        assert descriptor.is_reference_type
        assert _members(descriptor) == [
            ("_id", TypeKind.PRIMITIVE, "int", S.OPERATOR_EQUALITY),
            ("Name", TypeKind.REFERENCE_AGGREGATE, "string", S.STRING_ORDINAL_IGNORE_CASE),
            ("Nickname", TypeKind.REFERENCE_AGGREGATE, "string", S.STRING_ORDINAL_IGNORE_CASE),
            ("Age", TypeKind.VALUE_AGGREGATE, "int?", S.GENERIC_DEFAULT),
            ("LastSeen", TypeKind.VALUE_AGGREGATE, "global::System.DateTime", S.SUPPRESSED),
            ("Scores", TypeKind.REFERENCE_AGGREGATE, "int[]", S.SEQUENCE_EQUAL),
            ("Favorite", TypeKind.ENUM, "global::Demo.Models.Color", S.GENERIC_DEFAULT),
        ]

    def test_point(self, point_source):
        compilation = load_compilation([("Point.cs", point_source)])
        descriptor = _descriptor(compilation, "Demo.Point")
        assert not descriptor.is_reference_type
        assert _members(descriptor) == [
            ("X", TypeKind.PRIMITIVE, "int", S.OPERATOR_EQUALITY),
            ("Y", TypeKind.PRIMITIVE, "int", S.OPERATOR_EQUALITY),
            ("Weights", TypeKind.REFERENCE_AGGREGATE,
             "global::System.Collections.Generic.IReadOnlyList<double>", S.SEQUENCE_EQUAL),
        ]

    def test_declared_types_and_targets(self, person_source, point_source):
        compilation = load_compilation({"Person.cs": person_source, "Point.cs": point_source})
        assert [t.full_metadata_name for t in compilation.declared_types] == [
            "Demo.Models.Color", "Demo.Models.Person", "Demo.Point",
        ]
        assert [t.name for t in compilation.types_with_attribute("AutoEquality")] == [
            "Person", "Point",
        ]

    def test_enum_and_default_bases(self, person_source, point_source):
        compilation = load_compilation({"Person.cs": person_source, "Point.cs": point_source})
        color = compilation.get_type_by_metadata_name("Demo.Models.Color")
        person = compilation.get_type_by_metadata_name("Demo.Models.Person")
        point = compilation.get_type_by_metadata_name("Demo.Point")
        assert color.kind is TypeKind.ENUM
        assert color.base_type.full_metadata_name == "System.Enum"
        assert person.base_type.full_metadata_name == "System.Object"
        assert point.base_type.full_metadata_name == "System.ValueType"

    def test_partial_declarations_merge(self):
        compilation = load_compilation({
            "A.cs": "namespace Demo; [AutoEquality] public partial class Pair { public int First; }",
            "B.cs": "namespace Demo; public partial class Pair { public string Second { get; set; } }",
        })
        descriptor = _descriptor(compilation, "Demo.Pair")
        assert [m.name for m in descriptor.members] == ["First", "Second"]
        assert len(compilation.types_with_attribute("AutoEquality")) == 1

    def test_duplicate_declaration(self):
        with pytest.raises(FrontEndSyntaxError) as info:
            load_compilation({
                "A.cs": "namespace Demo; class Pair { }",
                "B.cs": "namespace Demo; class Pair { }",
            })
        assert info.value.code == ErrorCodes.DUPLICATE_TYPE

    def test_base_class_and_interfaces(self):
        compilation = load_compilation({"Numbers.cs": (
            "using System.Collections.Generic;\n"
            "namespace Demo;\n"
            "class Numbers : List<int>, IEquatable<Numbers> { }\n"
            "struct Tagged : IEnumerable<string> { }\n"
        )})
        numbers = compilation.get_type_by_metadata_name("Demo.Numbers")
        assert numbers.base_type.original_definition.full_metadata_name == (
            "System.Collections.Generic.List`1"
        )
        assert [i.name for i in numbers.interfaces] == ["IEquatable"]
        tagged = compilation.get_type_by_metadata_name("Demo.Tagged")
        assert tagged.base_type.full_metadata_name == "System.ValueType"
        assert [i.name for i in tagged.interfaces] == ["IEnumerable"]

    def test_enclosing_namespace_wins_over_implicit_usings(self):
        compilation = load_compilation({"Guid.cs": (
            "namespace Demo { struct Guid { public int Value; } }\n"
            "namespace Demo.Models { class Holder { public Guid Id; } }\n"
        )})
        descriptor = _descriptor(compilation, "Demo.Models.Holder")
        assert descriptor.members[0].type_full_name == "global::Demo.Guid"

    def test_implicit_and_global_usings(self):
        compilation = load_compilation({"Holder.cs": (
            "class Holder\n"
            "{\n"
            "    public Guid Id;\n"
            "    public global::System.TimeSpan Elapsed;\n"
            "    public List<KeyValuePair<string, int>> Pairs { get; set; }\n"
            "}\n"
        )})
        descriptor = _descriptor(compilation, "Holder")
        assert descriptor.namespace is None
        assert [m.type_full_name for m in descriptor.members] == [
            "global::System.Guid",
            "global::System.TimeSpan",
            "global::System.Collections.Generic.List"
            "<global::System.Collections.Generic.KeyValuePair<string, int>>",
        ]

    def test_unresolved_type(self):
        reporter = ErrorReporter()
        compilation = load_compilation(
            {"Part.cs": "namespace Demo; class Part { public Widget Piece; }"},
            reporter=reporter,
        )
        [message] = reporter.messages
        assert message.code == ErrorCodes.UNRESOLVED_TYPE
        assert message.severity is ErrorSeverity.INFO
        assert not reporter.has_errors()

        descriptor = _descriptor(compilation, "Demo.Part")
        assert _members(descriptor) == [
            ("Piece", TypeKind.UNKNOWN, "Widget", S.GENERIC_DEFAULT),
        ]

    def test_type_parameters_are_opaque(self):
        reporter = ErrorReporter()
        compilation = load_compilation(
            {"Box.cs": "class Box<T> { public T Value; public List<T> Items; }"},
            reporter=reporter,
        )
        box = compilation.get_type_by_metadata_name("Box`1")
        descriptor = build_descriptor(box, GenerationContext(compilation))
        assert _members(descriptor) == [
            ("Value", TypeKind.UNKNOWN, "T", S.GENERIC_DEFAULT),
            ("Items", TypeKind.REFERENCE_AGGREGATE,
             "global::System.Collections.Generic.List<T>", S.SEQUENCE_EQUAL),
        ]
        assert len(reporter) == 0

    def test_arrays_and_nullables(self):
        compilation = load_compilation({"Grid.cs": (
            "class Grid\n"
            "{\n"
            "    public double[,] Cells;\n"
            "    public int?[] Optional;\n"
            "    public string?[]? Labels;\n"
            "    public long? Total;\n"
            "}\n"
        )})
        descriptor = _descriptor(compilation, "Grid")
        assert _members(descriptor) == [
            ("Cells", TypeKind.REFERENCE_AGGREGATE, "double[,]", S.GENERIC_DEFAULT),
            ("Optional", TypeKind.REFERENCE_AGGREGATE, "int?[]", S.SEQUENCE_EQUAL),
            ("Labels", TypeKind.REFERENCE_AGGREGATE, "string[]", S.SEQUENCE_EQUAL),
            ("Total", TypeKind.VALUE_AGGREGATE, "long?", S.GENERIC_DEFAULT),
        ]

    def test_hash_combinator_arity(self, point_source):
        legacy = load_compilation({"Point.cs": point_source}, hash_combinator_arity=0)
        assert not _descriptor(legacy, "Demo.Point").hashing_mode_available
        assert _descriptor(load_compilation({"Point.cs": point_source}), "Demo.Point").hashing_mode_available
