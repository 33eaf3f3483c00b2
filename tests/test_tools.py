import pytest

from cognitive_engine.tools import (
    BASH_TOOL,
    TOOL_REGISTRY,
    build_tool_inventory,
    extract_insights,
    to_function_schemas,
)

# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

def test_registry_names_are_unique():
    names = [tool.name for tool in TOOL_REGISTRY]
    assert len(names) == len(set(names))


def test_inventory_without_trello():
    inventory = build_tool_inventory(has_trello=False)
    names = [tool.name for tool in inventory.available]

    assert BASH_TOOL in names
    assert not any(name.startswith("trello_") for name in names)
    assert "trello" not in inventory.configured


def test_inventory_with_trello():
    inventory = build_tool_inventory(has_trello=True)

    assert inventory.find("trello_create_card") is not None
    assert "trello" in inventory.configured
    assert len(inventory.available) == len(TOOL_REGISTRY)


def test_find_unknown_tool():
    assert build_tool_inventory().find("rm_rf") is None


def test_function_schemas():
    schemas = to_function_schemas(build_tool_inventory())
    bash = next(s for s in schemas if s["function"]["name"] == BASH_TOOL)

    assert bash["type"] == "function"
    assert bash["function"]["parameters"]["properties"]["command"]["type"] == "string"
    assert bash["function"]["parameters"]["required"] == ["command"]
    assert bash["function"]["description"].startswith("Execute shell commands")


def test_required_arguments_are_declared():
    for tool in TOOL_REGISTRY:
        schema = tool.parameters
        assert schema["type"] == "object"
        assert set(schema.get("required", [])) <= set(schema["properties"]), tool.name


@pytest.mark.parametrize("name, argument", [
    ("deploy_to_hetzner", "image"),
    ("spawn_claude_agent", "task"),
    ("get_container_logs", "container"),
    ("trello_create_card", "cardName"),
    ("stop_claude_agent", "agent_id"),
])
def test_state_changing_and_lookup_tools_take_arguments(name, argument):
    tool = build_tool_inventory(has_trello=True).find(name)
    assert argument in tool.parameters["required"]


# ---------------------------------------------------------------------------
# Insight extraction
# ---------------------------------------------------------------------------

def test_bash_insights_from_listing():
    result = {"output": "package.json\npyproject.toml\nsrc/\ntests/"}

    assert extract_insights(BASH_TOOL, result) == [
        "Found package.json", "Found pyproject.toml", "Has src directory", "Has tests",
    ]


def test_bash_insights_from_plain_string():
    assert extract_insights(BASH_TOOL, "src/app.py") == ["Has src directory"]


def test_bash_insights_from_stdout_key():
    assert extract_insights(BASH_TOOL, {"stdout": "package.json"}) == ["Found package.json"]


@pytest.mark.parametrize("tool, result, expected", [
    ("trello_list_boards", {"boards": [1, 2]}, ["Found 2 Trello boards"]),
    ("trello_create_card", {"cards": [1]}, ["Found 1 Trello cards"]),
    ("list_containers", {"containers": ["a", "b", "c"]}, ["3 containers running"]),
    ("list_containers", {"containers": "none"}, []),
    ("get_container_logs", {"output": "package.json"}, []),
])
def test_other_tool_insights(tool, result, expected):
    assert extract_insights(tool, result) == expected
