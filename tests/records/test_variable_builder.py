"""
Tests for building nested record variables from flat form fields.
"""

import pytest

from promptdesk.records.variables import ConflictingPath, build_variables, coerce_value, field_type


class TestCoerceValue:
    @pytest.mark.parametrize("raw, expected", [
        ("42", 42),
        ("-3.5", -3.5),
        ("1e3", 1000),
        ("abc", None),
        ("inf", None),
        ("nan", None),
        ("1_000", None),
        ("0x10", 16),
        ("0X1f", 31),
        ("0o17", 15),
        ("0b101", 5),
        ("0xZZ", None),
        ("-0x10", None),
        (" 7 ", 7),
        ("2.", 2),
        (".5", 0.5),
        ("1e400", None),
    ])
    def test_number(self, raw, expected):
        assert coerce_value(raw, "number") == expected

    @pytest.mark.parametrize("raw, expected", [
        ("true", True),
        ("TRUE", True),
        ("1", True),
        ("yes", False),
        ("false", False),
        ("0", False),
    ])
    def test_boolean(self, raw, expected):
        assert coerce_value(raw, "boolean") is expected

    def test_null(self):
        assert coerce_value("anything", "null") is None

    def test_array_from_json(self):
        assert coerce_value('[1, "two"]', "array") == [1, "two"]

    def test_array_from_comma_list(self):
        assert coerce_value("a, b ,c", "array") == ["a", "b", "c"]

    def test_object_from_json(self):
        assert coerce_value('{"k": 1}', "object") == {"k": 1}

    def test_unparseable_object_keeps_text(self):
        assert coerce_value("{broken", "object") == "{broken"

    def test_json_constants_are_not_accepted(self):
        assert coerce_value("NaN", "array") == ["NaN"]

    @pytest.mark.parametrize("type_name", ["string", "mixed", "unknown"])
    def test_other_types_keep_text(self, type_name):
        assert coerce_value(" padded ", type_name) == " padded "


class TestFieldType:
    def test_descriptor_forms(self):
        schema = {"a": "number", "b": {"type": "boolean"}, "c": {"type": 3}, "d": {}}

        assert field_type(schema, "a") == "number"
        assert field_type(schema, "b") == "boolean"
        assert field_type(schema, "c") == "string"
        assert field_type(schema, "d") == "string"
        assert field_type(schema, "missing") == "string"


class TestBuildVariables:
    def test_nested_paths(self):
        schema = {"user.age": {"type": "number"}, "user.active": {"type": "boolean"}}

        variables = build_variables({"user.name": "Ada", "user.age": "36", "user.active": "1"}, schema)

        assert variables == {"user": {"name": "Ada", "age": 36, "active": True}}

    def test_deep_paths_share_parents(self):
        variables = build_variables({"a.b.c": "1", "a.b.d": "2", "a.e": "3"}, {})

        assert variables == {"a": {"b": {"c": "1", "d": "2"}, "e": "3"}}

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n", None])
    def test_blank_fields_are_omitted(self, raw):
        assert build_variables({"note": raw, "kept": "x"}, {}) == {"kept": "x"}

    def test_blank_fields_do_not_create_parents(self):
        assert build_variables({"user.name": " "}, {}) == {}

    def test_value_then_nested_path_conflicts(self):
        with pytest.raises(ConflictingPath) as exc_info:
            build_variables({"a": "1", "a.b": "2"}, {})

        assert exc_info.value.path == "a.b"
        assert exc_info.value.segment == "a"

    def test_nested_path_then_value_conflicts(self):
        with pytest.raises(ConflictingPath) as exc_info:
            build_variables({"a.b": "2", "a": "1"}, {})

        assert exc_info.value.path == "a"

    def test_nested_path_extends_parsed_object(self):
        variables = build_variables({"a": '{"x": 1}', "a.y": "2"}, {"a": {"type": "object"}})

        assert variables == {"a": {"x": 1, "y": "2"}}

    def test_conflict_is_a_value_error(self):
        with pytest.raises(ValueError):
            build_variables({"a": "1", "a.b": "2"}, {})
