import pytest

from mcp_servers.strimzi_mcp_server.errors import SchemaParseError
from mcp_servers.strimzi_mcp_server.schema import SchemaParser
from mcp_servers.strimzi_mcp_server.tool import StrimziTool, error, success


def test_schema_parser_projects_known_fields():
    descriptor = SchemaParser.parse(
        '{"type": "object", "properties": {"name": {"type": "string"}},'
        ' "required": ["name"], "additionalProperties": false, "title": "ignored"}'
    )
    assert descriptor.type == "object"
    assert descriptor.required_properties == ["name"]
    assert descriptor.additional_properties is False
    assert descriptor.to_dict() == {
        "type": "object",
        "properties": {"name": {"type": "string"}},
        "required": ["name"],
        "additionalProperties": False,
    }


def test_schema_parser_defaults():
    descriptor = SchemaParser.parse('{"type": "object"}')
    assert descriptor.properties == {}
    assert descriptor.required_properties == []


def test_schema_parser_rejects_malformed():
    with pytest.raises(SchemaParseError):
        SchemaParser.parse("{not json")
    with pytest.raises(SchemaParseError):
        SchemaParser.parse("[1, 2]")


def test_string_arg():
    assert StrimziTool.get_string_arg(None, "x") is None
    assert StrimziTool.get_string_arg({"x": "a"}, "x") == "a"
    assert StrimziTool.get_string_arg({"x": 5}, "x") == "5"
    assert StrimziTool.get_string_arg({}, "x") is None


def test_int_args():
    assert StrimziTool.get_optional_int_arg({"n": 3}, "n") == 3
    assert StrimziTool.get_optional_int_arg({"n": 3.9}, "n") == 3
    assert StrimziTool.get_optional_int_arg({"n": " 12 "}, "n") == 12
    assert StrimziTool.get_optional_int_arg({"n": "abc"}, "n") is None
    assert StrimziTool.get_optional_int_arg({"n": True}, "n") is None
    assert StrimziTool.get_int_arg({}, "n", 7) == 7


def test_bool_arg():
    assert StrimziTool.get_bool_arg({"b": "TRUE"}, "b") is True
    assert StrimziTool.get_bool_arg({"b": "no"}, "b") is False
    assert StrimziTool.get_bool_arg({"b": 1}, "b") is True
    assert StrimziTool.get_bool_arg({}, "b", True) is True


def test_map_and_list_args():
    assert StrimziTool.get_map_arg({"m": {"a": 1}}, "m") == {"a": 1}
    assert StrimziTool.get_map_arg({"m": '{"a": 1}'}, "m") == {"a": 1}
    assert StrimziTool.get_map_arg({"m": "[1, 2]"}, "m") is None
    assert StrimziTool.get_map_arg({"m": 3}, "m") is None
    assert StrimziTool.get_list_arg({"l": [1, 2]}, "l") == [1, 2]
    assert StrimziTool.get_list_arg({"l": "a"}, "l") is None


class _Boom(StrimziTool):
    name = "boom"
    failure = "Error exploding"

    def execute(self, args):
        raise RuntimeError("kaboom")


class _Echo(StrimziTool):
    name = "echo"
    schema = '{"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]}'

    def execute(self, args):
        problem = self.require(args, "name", "namespace")
        if problem:
            return problem
        return success(args["name"])


def test_call_converts_exception_to_error_result():
    result = _Boom(store=None).call({})
    assert result.is_error
    assert result.text == "Error exploding: kaboom"


def test_require_reports_missing_keys():
    result = _Echo(store=None).call({"name": "x"})
    assert result.is_error
    assert result.text == "namespace is required"
    result = _Echo(store=None).call(None)
    assert result.text == "name, namespace are required"


def test_specification_exposes_schema():
    spec = _Echo(store=None).get_specification()
    assert spec.descriptor.name == "echo"
    assert spec.descriptor.input_schema.required_properties == ["name"]
    assert spec.handler({"name": "a", "namespace": "b"}) == success("a")


def test_result_helpers():
    assert error("x").is_error
    assert not success("x").is_error
