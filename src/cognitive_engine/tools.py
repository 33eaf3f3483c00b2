# tools.py
# Tool catalog — metadata only.
# Execution is owned by whatever tool executor the caller injects into the
# agent; the planner and monitor only ever see names and ToolInfo records.

from typing import Any

from cognitive_engine.models import ToolInfo, ToolInventory

BASH_TOOL = "execute_bash"
DEPLOY_TOOL = "deploy_to_hetzner"
SPAWN_AGENT_TOOL = "spawn_claude_agent"


def _tool(name: str, category: str, description: str, *, capabilities: list[str],
          prerequisites: list[str] | None = None, complexity: str = "simple",
          side_effects: bool = False, parameters: dict | None = None) -> ToolInfo:
    return ToolInfo(
        name=name,
        category=category,
        description=description,
        capabilities=capabilities,
        prerequisites=prerequisites or [],
        complexity=complexity,
        side_effects=side_effects,
        parameters=parameters or _params({}),
    )


def _arg(description: str, kind: str = "string", **extra: Any) -> dict[str, Any]:
    return {"type": kind, "description": description, **extra}


def _params(properties: dict[str, dict], required: list[str] | None = None) -> dict[str, Any]:
    """JSON schema for a tool's arguments object."""
    return {"type": "object", "properties": properties, "required": required or []}


_BOARD = _arg("Name of the board")
_CARD = _arg("Name of the card")
_CONTAINER = _arg("Container name or id")
_AGENT_ID = _arg("Id returned by spawn_claude_agent")


TOOL_REGISTRY: list[ToolInfo] = [
    # Exploration
    _tool(BASH_TOOL, "exploration",
          "Execute shell commands for file operations, searching, git, package management.",
          capabilities=["read files", "search code", "run commands", "git operations"],
          side_effects=True,
          parameters=_params({"command": _arg("The bash command to execute")}, ["command"])),

    # Trello (communication)
    _tool("trello_list_boards", "communication", "List all available Trello boards",
          capabilities=["view boards"], prerequisites=["trello_api_key"]),
    _tool("trello_create_card", "communication", "Create task cards for tracking work",
          capabilities=["create tasks", "track progress"], prerequisites=["trello_api_key"],
          side_effects=True,
          parameters=_params({
              "boardName": _BOARD,
              "listName": _arg("Name of the list to add the card to"),
              "cardName": _arg("Title of the card"),
              "description": _arg("Description for the card (optional)"),
          }, ["boardName", "listName", "cardName"])),
    _tool("trello_add_checklist", "communication", "Add checklists to cards for subtask tracking",
          capabilities=["break down tasks"], prerequisites=["trello_api_key"], side_effects=True,
          parameters=_params({
              "boardName": _BOARD,
              "cardName": _CARD,
              "checklistName": _arg("Name for the checklist"),
              "items": _arg("Checklist item names (optional)", "array", items={"type": "string"}),
          }, ["boardName", "cardName", "checklistName"])),
    _tool("trello_update_card", "communication", "Update card status, move between lists",
          capabilities=["update status", "move cards"], prerequisites=["trello_api_key"],
          side_effects=True,
          parameters=_params({
              "boardName": _BOARD,
              "cardName": _arg("Current name of the card to update"),
              "newName": _arg("New name for the card (optional)"),
              "newDescription": _arg("New description for the card (optional)"),
              "newListName": _arg("Name of list to move card to (optional)"),
              "dueDate": _arg("Due date in ISO format (optional)"),
          }, ["boardName", "cardName"])),
    _tool("trello_add_comment", "communication", "Add comments to cards for documentation",
          capabilities=["document progress"], prerequisites=["trello_api_key"], side_effects=True,
          parameters=_params({
              "boardName": _BOARD,
              "cardName": _arg("Name of the card to comment on"),
              "comment": _arg("Comment text to add"),
          }, ["boardName", "cardName", "comment"])),

    # Deployment / monitoring
    _tool(DEPLOY_TOOL, "deployment", "Deploy Docker containers to a Hetzner VPS",
          capabilities=["deploy containers", "production deployment"],
          prerequisites=["hetzner_ssh_key"], complexity="complex", side_effects=True,
          parameters=_params({
              "app_name": _arg("Name for the deployed container"),
              "image": _arg("Docker image to run, or a path with a Dockerfile to build"),
              "port": _arg("Port the application listens on", "integer"),
              "env_vars": _arg("Environment variables for the container", "object",
                               additionalProperties={"type": "string"}),
          }, ["app_name", "image"])),
    _tool("list_containers", "monitoring", "List running Docker containers",
          capabilities=["view deployments"], prerequisites=["hetzner_ssh_key"]),
    _tool("get_container_logs", "monitoring", "Get logs from running containers",
          capabilities=["debug issues", "monitor health"], prerequisites=["hetzner_ssh_key"],
          parameters=_params({
              "container": _CONTAINER,
              "lines": _arg("Number of trailing log lines to return", "integer"),
          }, ["container"])),
    _tool("restart_container", "execution", "Restart a running container",
          capabilities=["restart services"], prerequisites=["hetzner_ssh_key"], side_effects=True,
          parameters=_params({"container": _CONTAINER}, ["container"])),
    _tool("get_container_stats", "monitoring", "Get CPU/memory stats for containers",
          capabilities=["monitor resources"], prerequisites=["hetzner_ssh_key"],
          parameters=_params({"container": _arg("Container name or id; all when omitted")})),

    # Delegation
    _tool(SPAWN_AGENT_TOOL, "delegation",
          "Spawn an autonomous coding agent for complex subtasks",
          capabilities=["autonomous coding", "complex implementations"],
          prerequisites=["anthropic_api_key", "hetzner_ssh_key"], complexity="complex",
          side_effects=True,
          parameters=_params({
              "task": _arg("Complete instructions for the sub-agent"),
              "workspace": _arg("Working directory the agent operates in"),
              "context_files": _arg("Files the agent should read first", "array",
                                    items={"type": "string"}),
          }, ["task"])),
    _tool("get_claude_status", "monitoring", "Check status of a spawned agent",
          capabilities=["monitor sub-agent"],
          parameters=_params({"agent_id": _AGENT_ID}, ["agent_id"])),
    _tool("get_claude_output", "monitoring", "Read the output of a spawned agent",
          capabilities=["review sub-agent output"],
          parameters=_params({"agent_id": _AGENT_ID}, ["agent_id"])),
    _tool("wait_for_claude_agent", "delegation", "Wait for a spawned agent and collect results",
          capabilities=["synchronize agents"],
          parameters=_params({
              "agent_id": _AGENT_ID,
              "timeout_seconds": _arg("Maximum time to wait", "integer"),
          }, ["agent_id"])),
    _tool("stop_claude_agent", "delegation", "Stop a running agent",
          capabilities=["abort agent"], side_effects=True,
          parameters=_params({"agent_id": _AGENT_ID}, ["agent_id"])),
]


def build_tool_inventory(has_trello: bool = False) -> ToolInventory:
    """Filter the registry down to the integrations that are configured."""
    available = [
        tool for tool in TOOL_REGISTRY
        if has_trello or not tool.name.startswith("trello_")
    ]
    configured = [tool.name for tool in available]
    if has_trello:
        configured.append("trello")
    return ToolInventory(available=available, configured=configured, recommended=[])


def to_function_schemas(inventory: ToolInventory) -> list[dict[str, Any]]:
    """Render the inventory as OpenAI-style function tool definitions."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for tool in inventory.available
    ]


def extract_insights(tool_name: str, result: Any) -> list[str]:
    """Pull coarse, human-readable facts out of a tool result."""
    insights: list[str] = []
    payload = result if isinstance(result, dict) else {"output": result}

    if tool_name == BASH_TOOL:
        output = str(payload.get("output") or payload.get("stdout") or "")
        if "package.json" in output:
            insights.append("Found package.json")
        if "pyproject.toml" in output:
            insights.append("Found pyproject.toml")
        if "src/" in output:
            insights.append("Has src directory")
        if "test" in output:
            insights.append("Has tests")

    if tool_name.startswith("trello_"):
        if isinstance(payload.get("cards"), list):
            insights.append(f"Found {len(payload['cards'])} Trello cards")
        if isinstance(payload.get("boards"), list):
            insights.append(f"Found {len(payload['boards'])} Trello boards")

    if tool_name == "list_containers" and isinstance(payload.get("containers"), list):
        insights.append(f"{len(payload['containers'])} containers running")

    return insights
