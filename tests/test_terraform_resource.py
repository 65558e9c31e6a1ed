import json

import pytest

from kongdeck.terraform_resource import (
    ImportConfig,
    generate_import_keys,
    generate_imports,
    generate_lifecycle,
    generate_parents,
    generate_relationship,
    generate_resource,
    generate_resource_with_customizations,
    quote,
    render_object,
)


def _empty_imports():
    return ImportConfig(control_plane_id="", import_values={})


def test_generate_complex_layout():
    entity = json.loads(
        """{
        "field1": "basic_string",
        "field2": ["list", "of", "strings"],
        "field3": {
            "nested_field1": "nested_string",
            "nested_field2": ["list", "of", "nested", "strings"],
            "nested_field3": {
                "nested_nested_field1": "nested_nested_string",
                "nested_nested_field2": ["list", "of", "nested", "nested", "strings"],
                "nested_nested_field3": {
                    "nested_nested_nested_field1": "nested_nested_nested_string"
                }
            }
        },
        "field4": [],
        "field5": "Multi\\nline\\nstring",
        "field6": ["Multi\\nline\\nstring", "Multi\\nline\\nstring"]
    }"""
    )
    expected = """resource "konnect_entity_type" "some_service_name" {
  field1 = "basic_string"
  field2 = ["list", "of", "strings"]
  field3 = {
	nested_field1 = "nested_string"
	nested_field2 = ["list", "of", "nested", "strings"]
	nested_field3 = {
	  nested_nested_field1 = "nested_nested_string"
	  nested_nested_field2 = ["list", "of", "nested", "nested", "strings"]
	  nested_nested_field3 = {
		nested_nested_nested_field1 = "nested_nested_nested_string"
	  }
	}
  }
  field4 = []
  field5 = 
    <<EOF
    Multi
	line
	string
    EOF
  field6 = [
    <<EOF
	Multi
	line
	string
	EOF
	,
	<<EOF
	Multi
	line
	string
	EOF
	]

  service = {
	id = konnect_gateway_service.some_service.id
  }
  control_plane_id = var.control_plane_id
}
"""
    result = generate_resource(
        "entity_type", "name", entity, {"service": "some_service"}, _empty_imports(), []
    )
    assert result.split() == expected.split()


def test_generate_resource_without_parent():
    expected = """resource "konnect_entity_type" "name" {
	field1 = "value1"
	field2 = "value2"

	control_plane_id = var.control_plane_id
}
"""
    result = generate_resource(
        "entity_type", "name", {"field1": "value1", "field2": "value2"}, {}, _empty_imports(), []
    )
    assert result.split() == expected.split()


def test_generate_resource_with_parent():
    expected = """resource "konnect_entity_type" "parent_value1_name" {
	field1 = "value1"
	field2 = "value2"

	parent1 = {
		id = konnect_gateway_parent1.parent_value1.id
	}
	control_plane_id = var.control_plane_id
}
"""
    result = generate_resource(
        "entity_type",
        "name",
        {"field1": "value1", "field2": "value2"},
        {"parent1": "parent_value1"},
        _empty_imports(),
        [],
    )
    assert result.split() == expected.split()


def test_generate_relationship():
    expected = """resource "konnect_entity_type" "name" {
	relation1_id = konnect_gateway_relation1.relation_value1.id
	relation2_id = konnect_gateway_relation2.relation_value2.id
	control_plane_id = var.control_plane_id
}
"""
    result = generate_relationship(
        "entity_type",
        "name",
        {"relation2": "relation_value2", "relation1": "relation_value1"},
    )
    assert result.split() == expected.split()
    assert result.endswith("}\n\n")


def test_lifecycle():
    expected = """resource "konnect_entity_type" "name" {
  field1 = "value1"
  field2 = "value2"

  control_plane_id = var.control_plane_id
  lifecycle {
    ignore_changes = [
      ignore_this_one
    ]
  }

}
"""
    result = generate_resource(
        "entity_type",
        "name",
        {"field1": "value1", "field2": "value2"},
        {},
        _empty_imports(),
        ["ignore_this_one"],
    )
    assert result.split() == expected.split()


def test_imports():
    entity = {"id": "some_id", "field1": "basic_string", "field2": {"nested": "subkey"}}
    expected = r'''resource "konnect_entity_type" "name" {
  field1 = "basic_string"
  field2 = {
    nested = "subkey"
  }

  control_plane_id = var.control_plane_id
}

import {
  to = konnect_entity_type.name
  id = "{\"field2_nested\": \"subkey\", \"id\": \"some_id\", \"control_plane_id\": \"abc-123\"}"
}

'''
    result = generate_resource(
        "entity_type",
        "name",
        entity,
        {},
        ImportConfig(
            control_plane_id="abc-123",
            import_values={"id": "some_id", "field2_nested": "subkey"},
        ),
        [],
    )
    assert result == expected


def test_no_imports_without_entity_id():
    result = generate_resource(
        "entity_type",
        "name",
        {"field1": "value1"},
        {},
        ImportConfig(control_plane_id="abc-123", import_values={"id": "x"}),
        [],
    )
    assert "import {" not in result


def test_plugin_type_gets_name_and_drops_name_and_id():
    entity = {"name": "rate-limiting", "id": "x", "config": {"minute": 5}, "enabled": True}
    result = generate_resource(
        "gateway_plugin", "rate_limiting", entity, {}, ImportConfig(), []
    )
    assert result == (
        'resource "konnect_gateway_plugin_rate_limiting" "rate_limiting" {\n'
        "  enabled = true\n"
        "  config = {\n"
        "    minute = 5\n"
        "  }\n"
        "\n"
        "  control_plane_id = var.control_plane_id\n"
        "}\n\n"
    )
    assert entity["id"] == "x"


def test_parent_taken_from_entity_mapping():
    entity = {"name": "r1", "service": {"name": "my-svc"}}
    result = generate_resource("gateway_route", "r1", entity, {}, ImportConfig(), [])
    assert '"konnect_gateway_route" "r1"' in result
    assert "id = konnect_gateway_service.my_svc.id" in result
    assert "service = {" in result


def test_unknown_parent_type_raises():
    with pytest.raises(TypeError):
        generate_resource("entity_type", "name", {"service": 5}, {}, ImportConfig(), [])


def test_customization_wraps_attribute():
    result = generate_resource_with_customizations(
        "gateway_vault",
        "env",
        {"name": "env", "config": {"prefix": "x"}},
        {},
        {"config": "jsonencode"},
        ImportConfig(),
        [],
    )
    assert "  config = jsonencode({\n    prefix = \"x\"\n  })\n" in result


def test_generate_parents_with_id_suffix():
    assert generate_parents({"consumer_id": "my-user"}) == (
        "  consumer_id = konnect_gateway_consumer.my_user.id\n\n"
    )


def test_generate_parents_empty():
    assert generate_parents({}) == ""


def test_generate_lifecycle_values():
    assert generate_lifecycle([]) == ""
    assert generate_lifecycle(["secret", "key"]) == (
        "\n  lifecycle {\n    ignore_changes = [\n      secret,\n      key\n    ]\n  }\n"
    )


def test_generate_import_keys_sorted():
    assert generate_import_keys({"b": "2", "a": "1"}, "cp") == (
        r'{\"a\": \"1\", \"b\": \"2\", \"control_plane_id\": \"cp\"}'
    )
    assert generate_import_keys({}, "cp") == ""


def test_generate_import_keys_missing_value_raises():
    with pytest.raises(ValueError):
        generate_import_keys({"id": None}, "cp")


def test_generate_imports_empty_keys():
    assert generate_imports("t", "n", {}, "cp") == ""


def test_render_list_of_mappings():
    assert render_object("t", {"items": [{"a": 1}]}, 1, True, "\n", {}) == (
        "  items = [\n    {\n      a = 1\n    },\n  ]\n"
    )


def test_render_object_orders_priority_keys():
    text = render_object("t", {"b": "x", "username": "u", "enabled": False, "a": None}, 0, True, "\n", {})
    assert text == 'enabled = false\nusername = "u"\nb = "x"\n'


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (True, "true"),
        (60000, "60000"),
        (1000000, "1e+06"),
        (0.5, "0.5"),
        (0.00001, "1e-05"),
        ('say "hi"', '"say \\"hi\\""'),
        ("a\nb\n", "\n<<EOF\na\nb\nEOF\n"),
        ([1, "a"], '"[1 a]"'),
    ],
)
def test_quote(value, expected):
    assert quote(value) == expected