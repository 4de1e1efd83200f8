"""
tests/unit/test_source_parser.py

Unit tests for the C# declaration parser.
Tests the lexer, type references, declarations, members and attributes.
"""

import pytest

from bifrost2postman.schema_generation.models import (
    DeclarationKind,
    MemberKind,
    TokenKind,
)
from bifrost2postman.schema_generation.source_parser import parse_source, tokenize
from bifrost2postman.utils.exceptions import SourceParseError


# ===========================================================================
# Lexer tests
# ===========================================================================

class TestLexer:
    def test_comments_are_dropped(self) -> None:
        tokens = tokenize("a // line { comment\n/* block } */ b")
        assert [t.text for t in tokens] == ["a", "b"]

    def test_line_numbers(self) -> None:
        tokens = tokenize("a\n\n/* x\ny */ b")
        assert [t.line for t in tokens] == [1, 4]

    def test_regular_string_escapes(self) -> None:
        tokens = tokenize(r'"a\"b\n"')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value == 'a"b\n'

    def test_verbatim_string(self) -> None:
        tokens = tokenize('@"C:\\path ""quoted"""')
        assert len(tokens) == 1
        assert tokens[0].value == 'C:\\path "quoted"'

    def test_interpolated_string_has_no_value(self) -> None:
        tokens = tokenize('$"/x/{id}/{ "}" }" ;')
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].value is None
        assert tokens[1].text == ";"

    def test_raw_string(self) -> None:
        tokens = tokenize('"""\n{ not a brace }\n""" x')
        assert tokens[0].value == "{ not a brace }"
        assert tokens[1].text == "x"

    def test_char_literal(self) -> None:
        tokens = tokenize("'{' '\\''")
        assert [t.value for t in tokens] == ["{", "'"]

    def test_preprocessor_lines_dropped(self) -> None:
        tokens = tokenize("#if DEBUG\na\n#endif\nb")
        assert [t.text for t in tokens] == ["a", "b"]

    def test_verbatim_identifier(self) -> None:
        tokens = tokenize("@class")
        assert tokens[0].kind == TokenKind.IDENTIFIER
        assert tokens[0].text == "class"

    def test_generic_closers_are_split(self) -> None:
        tokens = tokenize("List<List<int>>")
        assert [t.text for t in tokens][-2:] == [">", ">"]

    def test_unterminated_string_raises(self) -> None:
        with pytest.raises(SourceParseError):
            tokenize('"abc\n')


# ===========================================================================
# Declaration tests
# ===========================================================================

class TestDeclarations:
    def test_block_namespace_and_usings(self) -> None:
        unit = parse_source("""
            using System;
            using System.Collections.Generic;
            using Models = Hudl.Ordering.Models;
            namespace Hudl.Ordering { public class Order { } }
        """)
        assert unit.usings == ["System", "System.Collections.Generic"]
        assert unit.using_aliases["Models"].name == "Hudl.Ordering.Models"
        assert unit.types[0].full_name == "Hudl.Ordering.Order"

    def test_file_scoped_namespace(self) -> None:
        unit = parse_source("namespace Hudl.Cart;\npublic class Cart { }\npublic interface ICart { }")
        assert [t.full_name for t in unit.types] == ["Hudl.Cart.Cart", "Hudl.Cart.ICart"]

    def test_nested_namespaces(self) -> None:
        unit = parse_source("namespace A { namespace B { class C { } } }")
        assert unit.types[0].namespace == "A.B"

    def test_declaration_kinds(self) -> None:
        unit = parse_source("""
            class A { }
            interface IB { }
            struct C { }
            record D(int X);
            record struct E(int Y);
            enum F { One, Two }
        """)
        assert [t.kind for t in unit.types] == [
            DeclarationKind.CLASS,
            DeclarationKind.INTERFACE,
            DeclarationKind.STRUCT,
            DeclarationKind.RECORD,
            DeclarationKind.RECORD_STRUCT,
            DeclarationKind.ENUM,
        ]

    def test_nested_types_follow_outer_type(self) -> None:
        unit = parse_source("""
            namespace N {
                public class Outer {
                    public class Inner { public int X { get; set; } }
                    public int Y { get; set; }
                }
            }
        """)
        assert [t.full_name for t in unit.types] == ["N.Outer", "N.Outer.Inner"]
        assert unit.types[1].containing_types == ["Outer"]
        assert [m.name for m in unit.types[0].members] == ["Y"]

    def test_generic_type_parameters_and_bases(self) -> None:
        unit = parse_source(
            "public class Page<T> : PagedBase, IEnumerable<T> where T : class { }"
        )
        declaration = unit.types[0]
        assert declaration.type_parameters == ["T"]
        assert declaration.metadata_name == "Page`1"
        assert [b.display() for b in declaration.base_types] == ["PagedBase", "IEnumerable<T>"]

    def test_record_parameters(self) -> None:
        unit = parse_source("public record AddItem([property: Required] string CartId, int Quantity = 1);")
        parameters = unit.types[0].record_parameters
        assert [(p.name, p.type.name) for p in parameters] == [("CartId", "string"), ("Quantity", "int")]

    def test_assembly_attribute_before_namespace(self) -> None:
        unit = parse_source('[assembly: InternalsVisibleTo("Tests")]\nnamespace A { class B { } }')
        assert unit.types[0].full_name == "A.B"

    def test_unclosed_type_raises_with_line(self) -> None:
        with pytest.raises(SourceParseError) as exc_info:
            parse_source("namespace A {\n  class B {\n    int X;\n")
        assert exc_info.value.line is not None


# ===========================================================================
# Member tests
# ===========================================================================

class TestMembers:
    def test_properties_and_fields(self) -> None:
        unit = parse_source("""
            public class Order {
                public const string Kind = "order";
                private static readonly int counter = 0;
                public string Id { get; set; }
                public int Count => Lines.Count;
                public string Secret { private get; set; }
                public string WriteOnly { set { } }
                public List<OrderLine> Lines { get; init; } = new();
                public int a, b;
            }
        """)
        members = {m.name: m for m in unit.types[0].members}
        assert list(members) == ["Kind", "counter", "Id", "Count", "Secret", "WriteOnly", "Lines", "a", "b"]
        assert members["Kind"].kind == MemberKind.FIELD
        assert members["Kind"].initializer[0].value == "order"
        assert members["counter"].modifiers == ["private", "static", "readonly"]
        assert members["Count"].kind == MemberKind.PROPERTY
        assert members["Secret"].is_readable is False
        assert members["WriteOnly"].is_readable is False
        assert members["Lines"].type.display() == "List<OrderLine>"

    def test_skipped_members(self) -> None:
        unit = parse_source("""
            public class Order {
                public Order(int id) { Id = id; }
                static Order() { }
                ~Order() { }
                public event EventHandler Changed;
                public string this[int i] => "";
                public static Order operator +(Order a, Order b) => a;
                public delegate void Handler(int x);
                public int Id { get; }
            }
        """)
        declaration = unit.types[0]
        assert [m.name for m in declaration.members] == ["Id"]
        assert declaration.methods == []

    def test_method_bodies_with_braces_in_strings(self) -> None:
        unit = parse_source("""
            public class Svc {
                public string Format() { return $"{{ {Name} }}" + "}" + '{'; }
                public string Name { get; set; }
            }
        """)
        declaration = unit.types[0]
        assert [m.name for m in declaration.methods] == ["Format"]
        assert [m.name for m in declaration.members] == ["Name"]

    def test_explicit_interface_implementation(self) -> None:
        unit = parse_source("""
            public class Order : IHasId {
                string IHasId.Id { get; set; }
                int IComparable<Order>.CompareTo(Order other) => 0;
            }
        """)
        declaration = unit.types[0]
        assert declaration.members[0].name == "Id"
        assert declaration.members[0].is_explicit_implementation is True
        assert declaration.methods[0].name == "CompareTo"

    def test_type_references(self) -> None:
        unit = parse_source("""
            public class Shapes {
                public int? A { get; set; }
                public string[] B { get; set; }
                public int[,] C { get; set; }
                public Dictionary<string, List<int?>> D { get; set; }
                public (int Id, string Name) E { get; set; }
                public global::System.Guid F { get; set; }
            }
        """)
        types = {m.name: m.type for m in unit.types[0].members}
        assert types["A"].nullable is True
        assert types["B"].is_array and types["B"].element.name == "string"
        assert types["C"].rank == 2
        assert types["D"].display() == "Dictionary<string, List<int?>>"
        assert types["E"].name == "System.ValueTuple"
        assert types["F"].name == "System.Guid"


# ===========================================================================
# Method and attribute tests
# ===========================================================================

class TestMethods:
    def test_method_with_attributes_and_parameters(self) -> None:
        unit = parse_source("""
            public interface IOrderService {
                [BifrostPath("/bifrost/order-service/get-order"), Obsolete]
                [return: NotNull]
                Task<Order> GetOrder([FromBody] GetOrderRequest request, CancellationToken token = default);
            }
        """)
        method = unit.types[0].methods[0]
        assert method.name == "GetOrder"
        assert [a.name for a in method.attributes] == ["BifrostPath", "Obsolete", "NotNull"]
        assert method.attributes[0].arguments[0].tokens[0].value == "/bifrost/order-service/get-order"
        assert [p.name for p in method.parameters] == ["request", "token"]
        assert method.parameters[0].type.name == "GetOrderRequest"
        assert method.return_type.display() == "Task<Order>"

    def test_generic_method(self) -> None:
        unit = parse_source("""
            public interface IQuery {
                Task<T> Run<T>(T request) where T : class;
            }
        """)
        method = unit.types[0].methods[0]
        assert method.name == "Run"
        assert method.type_parameters == ["T"]

    def test_named_attribute_arguments(self) -> None:
        unit = parse_source("""
            class A {
                [BifrostPath(path: Routes.Get, Timeout = 3)]
                void Get() { }
            }
        """)
        arguments = unit.types[0].methods[0].attributes[0].arguments
        assert [a.name for a in arguments] == ["path", "Timeout"]
        assert arguments[0].text == "Routes . Get"

    def test_method_order_is_declaration_order(self) -> None:
        unit = parse_source("""
            interface I {
                void C();
                void A();
                void B();
            }
        """)
        assert [m.name for m in unit.types[0].methods] == ["C", "A", "B"]
