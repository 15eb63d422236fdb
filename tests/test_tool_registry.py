"""Tests for discovery.tool_registry."""

import json
from unittest.mock import MagicMock

import pytest
from mcp.types import Tool

from openapi_mcp_server.discovery.tool_registry import ToolRegistry


@pytest.fixture
def records(load_spec, petstore_spec):
    return load_spec(petstore_spec)


class TestRegisterOperation:
    def test_publishes_tool(self, registry, tool_host, records):
        assert registry.register_operation("findPetsByStatus", records["findPetsByStatus"])
        tools = tool_host.get_mcp_tools()
        assert len(tools) == 1
        assert isinstance(tools[0], Tool)
        assert tools[0].name == "findPetsByStatus"
        assert tools[0].description == "Finds Pets by status"
        assert tool_host.binding("findPetsByStatus") == "findPetsByStatus"

    def test_second_registration_is_noop(self, registry, tool_host, records):
        assert registry.register_operation("addPet", records["addPet"])
        assert not registry.register_operation("addPet", records["addPet"])
        assert tool_host.tool_names == ["addPet"]
        assert registry.tool_count == 1

    def test_description_fallback(self, registry, records):
        registry.register_operation("getInventory", records["getInventory"])
        assert registry.get("getInventory").description == "Operation: getInventory"

    def test_host_receives_json_schema_string(self, converter, records):
        host = MagicMock()
        registry = ToolRegistry(converter, host)
        registry.register_operation("getPetById", records["getPetById"])
        name, description, schema, binding = host.publish.call_args.args
        assert name == "getPetById"
        assert binding == "getPetById"
        assert json.loads(schema)["properties"]["petId"]["type"] == "integer"

    def test_publish_failure_leaves_no_bookkeeping(self, converter, records):
        host = MagicMock()
        host.publish.side_effect = RuntimeError("host down")
        registry = ToolRegistry(converter, host)
        with pytest.raises(RuntimeError):
            registry.register_operation("addPet", records["addPet"])
        assert not registry.is_registered("addPet")

    def test_reserved_name_not_published(self, converter, tool_host, records):
        registry = ToolRegistry(converter, tool_host, reserved_names={"getInventory"})
        assert not registry.register_operation("getInventory", records["getInventory"])
        assert not registry.is_registered("getInventory")
        assert tool_host.tool_names == []
        assert registry.register_operation("addPet", records["addPet"])

    def test_response_schema_recorded(self, registry, records):
        registry.register_operation("getInventory", records["getInventory"])
        assert registry.get("getInventory").response_schema == {
            "type": "object",
            "additionalProperties": {"type": "integer", "format": "int32"},
        }


class TestUnregisterOperation:
    def test_retracts_tool(self, registry, tool_host, records):
        registry.register_operation("addPet", records["addPet"])
        registry.unregister_operation("addPet")
        assert tool_host.get_mcp_tools() == []
        assert not registry.is_registered("addPet")

    def test_unknown_is_safe(self, registry):
        registry.unregister_operation("neverRegistered")
        assert registry.tool_count == 0

    def test_response_schema_recomputed_after_unregister(self, registry, records):
        record = records["getInventory"]
        registry.register_operation("getInventory", record)
        registry.unregister_operation("getInventory")
        record.operation["responses"]["200"]["content"]["application/json"]["schema"] = {
            "type": "string"
        }
        registry.register_operation("getInventory", record)
        assert registry.get("getInventory").response_schema == {"type": "string"}

    def test_register_again_after_unregister(self, registry, tool_host, records):
        registry.register_operation("addPet", records["addPet"])
        registry.unregister_operation("addPet")
        assert registry.register_operation("addPet", records["addPet"])
        assert tool_host.tool_names == ["addPet"]


class TestInputSchema:
    def test_enum_query_parameter(self, registry, records):
        schema = registry.build_input_schema(records["findPetsByStatus"])
        assert schema["type"] == "object"
        status = schema["properties"]["status"]
        assert status["type"] == "string"
        assert sorted(status["enum"]) == ["available", "pending", "sold"]
        assert status["description"] == "Status values that need to be considered for filter"
        assert "required" not in schema

    def test_request_body_from_ref(self, registry, records):
        schema = registry.build_input_schema(records["addPet"])
        body = schema["properties"]["requestBody"]
        assert body["properties"]["id"]["type"] == "integer"
        assert body["properties"]["name"]["type"] == "string"
        assert schema["required"] == ["requestBody"]

    def test_request_body_prefers_json(self, registry, records):
        # updatePet lists XML (Tag) before JSON (Pet)
        body = registry.build_input_schema(records["updatePet"])["properties"]["requestBody"]
        assert body["$ref"] == "#/components/schemas/Pet"

    def test_request_body_without_schema(self, registry, records):
        record = records["addPet"]
        record.operation["requestBody"] = {"content": {"application/json": {}}}
        body = registry.build_input_schema(record)["properties"]["requestBody"]
        assert body == {"type": "object", "description": "Request body"}

    def test_request_body_without_content(self, registry, records):
        record = records["addPet"]
        record.operation["requestBody"] = {"description": "no content"}
        body = registry.build_input_schema(record)["properties"]["requestBody"]
        assert body == {"type": "object", "description": "Request body"}

    def test_request_body_conversion_error(self, registry, records, monkeypatch):
        monkeypatch.setattr(
            registry.converter, "convert", MagicMock(side_effect=RuntimeError("boom"))
        )
        body = registry.build_input_schema(records["addPet"])["properties"]["requestBody"]
        assert body == {"type": "object", "description": "Request body"}

    def test_path_parameter_required(self, registry, records):
        schema = registry.build_input_schema(records["getPetById"])
        assert schema["properties"]["petId"] == {
            "type": "integer",
            "description": "Parameter: petId",
            "format": "int64",
        }
        assert schema["required"] == ["petId"]

    def test_array_parameter_items(self, registry, records):
        tags = registry.build_input_schema(records["findPetsByTags"])["properties"]["tags"]
        assert tags["type"] == "array"
        assert tags["items"] == {"type": "string"}

    def test_path_level_parameter(self, registry, records):
        schema = registry.build_input_schema(records["getOrderById"])
        assert "orderId" in schema["properties"]

    def test_referenced_parameters(self, registry, records):
        props = registry.build_input_schema(records["loginUser"])["properties"]
        assert props["username"] == {
            "type": "string",
            "description": "Parameter reference: #/components/parameters/Username",
        }
        assert props["pageSize"]["type"] == "integer"
        assert props["pageSize"]["format"] == "int32"
        assert props["pageSize"]["enum"] == [10, 50, 100]
        assert props["missing"] == {
            "type": "string",
            "description": "Unresolved parameter reference: #/components/parameters/Missing",
        }

    def test_referenced_parameter_with_schema_ref(self, registry, load_spec, petstore_spec):
        components = petstore_spec["components"]
        components["schemas"]["PetStatus"] = {"type": "string", "enum": ["available", "sold"]}
        components["parameters"]["StatusFilter"] = {
            "name": "status",
            "in": "query",
            "schema": {"$ref": "#/components/schemas/PetStatus"},
        }
        petstore_spec["paths"]["/store/inventory"]["get"]["parameters"] = [
            {"$ref": "#/components/parameters/StatusFilter"}
        ]
        records = load_spec(petstore_spec)
        props = registry.build_input_schema(records["getInventory"])["properties"]
        assert props["statusFilter"] == {
            "type": "string",
            "description": "Parameter reference: #/components/parameters/StatusFilter",
            "enum": ["available", "sold"],
        }

    def test_referenced_parameter_required(self, registry, records):
        schema = registry.build_input_schema(records["loginUser"])
        assert schema["required"] == ["username"]

    def test_unknown_parameter_reference(self, registry, records):
        record = records["getInventory"]
        record.operation["parameters"] = [{"$ref": "#/components/schemas/Pet"}]
        props = registry.build_input_schema(record)["properties"]
        assert props["param"] == {
            "type": "string",
            "description": "Unknown parameter reference: #/components/schemas/Pet",
        }

    def test_parameter_without_schema(self, registry, records):
        record = records["getInventory"]
        record.operation["parameters"] = [
            {"name": "q", "in": "query", "description": "free text"}
        ]
        props = registry.build_input_schema(record)["properties"]
        assert props["q"] == {"type": "string", "description": "free text"}

    def test_no_parameters_no_body(self, registry, records):
        assert registry.build_input_schema(records["getInventory"]) == {
            "type": "object",
            "properties": {},
        }
