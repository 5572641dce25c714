"""Tests for the .msg parser."""

import pytest

from rosmsgc.codegen.model import Arity, ArityKind, Role, TypeRef
from rosmsgc.codegen.parser import (
    MessageParser,
    ParseState,
    parse_file,
    parse_line,
    parse_literal,
    parse_message,
    role_from_filename,
    strip_comment,
)
from rosmsgc.errors import (
    DefinitionError,
    DuplicateField,
    InvalidConstantValue,
    InvalidDefaultValue,
    MalformedDefinition,
)

from conftest import SAMPLE_MSG


def parse(text, package="demo", name="Sample"):
    return parse_message(text, package, name, source="Sample.msg")


# -- Fields -------------------------------------------------------------------

class TestFields:

    def test_scalar_fields_in_order(self):
        model = parse("int32 a\nstring b\nfloat64 c\n")
        assert model.field_names == ("a", "b", "c")
        assert [f.type.name for f in model.fields] == ["int32", "string", "float64"]
        assert all(f.arity == Arity.scalar() for f in model.fields)
        assert all(f.type.is_primitive for f in model.fields)

    def test_array_forms(self):
        model = parse("float64[] a\nfloat64[3] b\nfloat64[<=5] c\nint32[0] d\n")
        a, b, c, d = model.fields
        assert a.arity == Arity.unbounded()
        assert b.arity == Arity(ArityKind.FIXED, 3)
        assert c.arity == Arity(ArityKind.BOUNDED, 5)
        assert d.arity == Arity.fixed(0)

    def test_array_spacing(self):
        model = parse("float64 [ <= 5 ] c\n")
        assert model.fields[0].arity == Arity.bounded(5)

    def test_zero_bound(self):
        field = parse("int32[<=0] a\n").fields[0]
        assert field.arity == Arity.bounded(0)
        assert parse("int32[<=0] a []\n").fields[0].default == ()

    def test_bounded_without_size(self):
        with pytest.raises(MalformedDefinition):
            parse("int32[<=] a\n")

    def test_bounded_string(self):
        field = parse("string<=8 label\n").fields[0]
        assert field.type == TypeRef("string", string_bound=8)
        assert field.idl_type == "string<=8"

    def test_only_strings_take_a_bound(self):
        with pytest.raises(MalformedDefinition):
            parse("int32<=8 a\n")

    def test_composite_types(self):
        model = parse("Point p\ngeometry_msgs/Pose q\nstd_msgs/msg/Header h\ntime t\n")
        refs = [f.type for f in model.fields]
        assert refs == [
            TypeRef("Point", "demo"),
            TypeRef("Pose", "geometry_msgs"),
            TypeRef("Header", "std_msgs"),
            TypeRef("Time", "builtin_interfaces"),
        ]
        assert model.composite_types() == tuple(refs)

    def test_idl_type(self):
        model = parse("geometry_msgs/Point[<=4] pts\nuint8[16] data\n")
        assert [f.idl_type for f in model.fields] == [
            "geometry_msgs/Point[<=4]", "uint8[16]",
        ]

    def test_duplicate_field(self):
        with pytest.raises(DuplicateField) as exc:
            parse("int32 a\nfloat64 b\nstring a\n")
        assert exc.value.line_number == 3

    def test_duplicate_constant_and_field(self):
        with pytest.raises(DuplicateField):
            parse("int32 A=1\nint32 A\n")

    def test_unrecognized_line(self):
        with pytest.raises(MalformedDefinition) as exc:
            parse("int32 a\n@@ not valid\n")
        err = exc.value
        assert err.line_number == 2
        assert err.source == "Sample.msg"
        assert "Sample.msg:2" in str(err)
        assert "@@ not valid" in str(err)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse("int32\n")
        assert issubclass(DuplicateField, DefinitionError)


# -- Constants ----------------------------------------------------------------

class TestConstants:

    def test_integer_constants(self):
        model = parse("int32 X=10\nuint8 Y = 0x1F\nint8 Z=-5\n")
        assert [(c.name, c.value) for c in model.constants] == [("X", 10), ("Y", 31), ("Z", -5)]
        assert model.fields == ()

    def test_constant_range_is_checked(self):
        parse("uint8 X=255\n")
        with pytest.raises(InvalidConstantValue):
            parse("uint8 X=256\n")
        with pytest.raises(InvalidConstantValue):
            parse("uint8 X=-1\n")
        with pytest.raises(InvalidConstantValue):
            parse("int8 X=128\n")

    def test_constant_type_is_checked(self):
        with pytest.raises(InvalidConstantValue):
            parse("int32 X=1.5\n")
        with pytest.raises(InvalidConstantValue):
            parse("bool X=maybe\n")

    def test_bool_and_float(self):
        model = parse("bool A=true\nbool B=False\nfloat64 C=1.5e3\n")
        assert [c.value for c in model.constants] == [True, False, 1500.0]

    def test_string_constant_keeps_remainder(self):
        model = parse("string S=hello # world\n")
        assert model.constants[0].value == "hello # world"

    def test_numeric_constant_strips_comment(self):
        model = parse("int32 X=7 # seven\n")
        assert model.constants[0].value == 7

    def test_constant_must_be_primitive_scalar(self):
        with pytest.raises(MalformedDefinition):
            parse("int32[2] X=1\n")
        with pytest.raises(MalformedDefinition):
            parse("Point X=1\n")


# -- Defaults -----------------------------------------------------------------

class TestDefaults:

    def test_scalar_defaults(self):
        model = parse('int32 a 5\nfloat32 b -0.5\nbool c true\nstring d "hi there"\n')
        assert [f.default for f in model.fields] == [5, -0.5, True, "hi there"]

    def test_array_default(self):
        field = parse("uint8[3] rgb [1, 2, 3]\n").fields[0]
        assert field.default == (1, 2, 3)

    def test_fixed_default_length_must_match(self):
        with pytest.raises(InvalidDefaultValue):
            parse("uint8[3] rgb [1, 2]\n")

    def test_bounded_default_may_not_exceed_bound(self):
        assert parse("int32[<=3] a [1, 2]\n").fields[0].default == (1, 2)
        with pytest.raises(InvalidDefaultValue):
            parse("int32[<=3] a [1, 2, 3, 4]\n")

    def test_zero_bound_default_must_be_empty(self):
        with pytest.raises(InvalidDefaultValue):
            parse("int32[<=0] a [1]\n")

    def test_default_element_range(self):
        with pytest.raises(InvalidDefaultValue):
            parse("uint8[] a [1, 300]\n")

    def test_array_default_must_be_a_sequence(self):
        with pytest.raises(InvalidDefaultValue):
            parse("int32[] a 5\n")

    def test_composite_cannot_have_default(self):
        with pytest.raises(InvalidDefaultValue):
            parse("Point p 5\n")

    def test_string_default_within_bound(self):
        with pytest.raises(InvalidDefaultValue):
            parse('string<=3 s "toolong"\n')

    def test_string_list_default_with_commas(self):
        field = parse('string[] names ["a,b", "c"]\n').fields[0]
        assert field.default == ("a,b", "c")

    def test_default_comment_is_stripped(self):
        field = parse("float64 x 0.5  # half\n").fields[0]
        assert field.default == 0.5


# -- Layout -------------------------------------------------------------------

class TestLayout:

    def test_comments_and_blank_lines(self):
        model = parse("# header\n\n   \n  # indented\nint32 a  # trailing\n")
        assert model.field_names == ("a",)

    def test_no_trailing_newline(self):
        assert parse("int32 a\nint32 b").field_names == ("a", "b")

    def test_crlf_line_endings(self):
        assert parse("int32 a\r\nint32 b\r\n").field_names == ("a", "b")

    def test_empty_definition(self):
        model = parse("")
        assert model.fields == ()
        assert model.constants == ()

    def test_sample(self):
        model = parse(SAMPLE_MSG)
        assert [c.name for c in model.constants] == ["MAX_SPEED", "GREETING", "ENABLED"]
        assert model.field_names == ("a", "b", "c", "rgb", "samples", "label", "stamp")
        assert model.fields[5].default == "robot"

    def test_parse_line_is_a_fold_step(self):
        state = ParseState(package="demo")
        after = parse_line(state, "int32 a", 1)
        assert state.fields == ()
        assert after.fields[0].name == "a"
        assert parse_line(after, "# comment", 2) is after


class TestLiterals:

    def test_strip_comment_respects_quotes(self):
        assert strip_comment('"a # b" # c') == '"a # b"'
        assert strip_comment("1 # x") == "1"

    def test_integer_bases(self):
        int32 = TypeRef("int32")
        assert parse_literal("0x10", int32) == 16
        assert parse_literal("010", int32) == 10

    @pytest.mark.parametrize("text,type_name", [
        ("1_000", "int32"),
        ("0x_ff", "uint8"),
        ("1_0.5", "float64"),
    ])
    def test_digit_separators_rejected(self, text, type_name):
        with pytest.raises(ValueError):
            parse_literal(text, TypeRef(type_name))

    def test_digit_separators_in_definitions(self):
        with pytest.raises(InvalidConstantValue):
            parse("int32 X=1_000\n")
        with pytest.raises(InvalidDefaultValue):
            parse("float64 x 1_0.5\n")
        assert parse('string s "a_b"\n').fields[0].default == "a_b"

    def test_special_floats(self):
        value = parse_literal("inf", TypeRef("float64"))
        assert value == float("inf")

    def test_non_primitive(self):
        with pytest.raises(ValueError):
            parse_literal("1", TypeRef("Point", "demo"))


# -- Files --------------------------------------------------------------------

class TestFiles:

    @pytest.mark.parametrize("filename,role", [
        ("Point.msg", Role.MESSAGE),
        ("MoveRequest.msg", Role.REQUEST),
        ("MoveResponse.msg", Role.RESPONSE),
    ])
    def test_role_from_filename(self, filename, role):
        assert role_from_filename(filename) is role

    def test_role_ignores_directories(self):
        assert role_from_filename("/ws/Request/Point.msg") is Role.MESSAGE

    def test_parse_file(self, msg_dir):
        model = parse_file(msg_dir / "Point.msg", "geometry_msgs")
        assert model.full_name == "geometry_msgs/Point"
        assert model.source == str(msg_dir / "Point.msg")
        assert model.field_names == ("x", "y", "z")

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_file(tmp_path / "Missing.msg", "demo")

    def test_message_parser(self, tmp_path):
        path = tmp_path / "AddRequest.msg"
        path.write_text("int64 a\nint64 b\n")
        parser = MessageParser("demo")
        model = parser.parse_file(path)
        assert model.role is Role.REQUEST
        assert parser.parse_string("int64 sum", "AddResponse", Role.RESPONSE).role.is_service
