"""
Unit tests for the tool registry.

Tests:
- Catalog contents for discovery and tools/list
- Argument validation and integer coercion
"""

import pytest

from services.mcp.errors import INVALID_PARAMS, ToolValidationError
from services.mcp.registry import MAX_TIMEOUT_SECONDS, ToolRegistry

EXPECTED_TOOLS = [
    "sendMessageToChat",
    "createTwitchPoll",
    "createTwitchPrediction",
    "createTwitchClip",
    "analyzeChat",
    "getRecentChatLog",
    "timeoutUser",
    "banUser",
    "updateStreamTitle",
    "updateStreamCategory",
]


@pytest.fixture
def registry():
    return ToolRegistry()


class TestCatalog:
    def test_tool_names(self, registry):
        assert registry.names() == EXPECTED_TOOLS
        assert "banUser" in registry
        assert "kickUser" not in registry

    def test_mcp_tools_have_input_schema(self, registry):
        tools = {tool["name"]: tool for tool in registry.mcp_tools()}
        poll = tools["createTwitchPoll"]["inputSchema"]
        assert poll["type"] == "object"
        assert poll["required"] == ["title", "choices", "duration"]
        assert poll["properties"]["duration"]["type"] == "integer"
        assert "required" not in tools["createTwitchClip"]["inputSchema"]

    def test_discovery_document(self, registry):
        doc = registry.discovery_document()
        assert doc["server"] == "Twitch MCP Server"
        assert doc["authentication"]["required"] is True
        assert doc["authentication"]["lazy_loading"] is True
        assert "twitch.auth" in doc["authentication"]["parameters"]

        tools = {tool["name"]: tool for tool in doc["tools"]}
        assert tools["createTwitchPoll"]["parameters"]["duration"] == "integer (required - seconds)"
        assert tools["timeoutUser"]["parameters"]["reason"] == "string (optional)"
        assert tools["analyzeChat"]["parameters"] == {}


class TestValidate:
    def test_valid_arguments(self, registry):
        args = registry.validate("sendMessageToChat", {"message": "hi"})
        assert args == {"message": "hi"}

    def test_returns_a_copy(self, registry):
        original = {"message": "hi"}
        assert registry.validate("sendMessageToChat", original) is not original

    def test_missing_arguments_default_to_empty(self, registry):
        assert registry.validate("analyzeChat", None) == {}

    def test_unknown_tool(self, registry):
        with pytest.raises(ToolValidationError, match="Unknown tool: kickUser"):
            registry.validate("kickUser", {})

    @pytest.mark.parametrize("name", [None, "", 5])
    def test_missing_tool_name(self, registry, name):
        with pytest.raises(ToolValidationError, match="Tool name is required"):
            registry.validate(name, {})

    def test_missing_required_argument(self, registry):
        with pytest.raises(ToolValidationError) as exc:
            registry.validate("createTwitchPoll", {"title": "Best?", "choices": "a,b"})
        assert exc.value.code == INVALID_PARAMS
        assert "duration" in exc.value.message

    def test_wrong_type(self, registry):
        with pytest.raises(ToolValidationError, match=r"\(duration\)"):
            registry.validate(
                "createTwitchPoll", {"title": "Best?", "choices": "a,b", "duration": "soon"}
            )

    def test_non_object_arguments(self, registry):
        with pytest.raises(ToolValidationError, match="must be an object"):
            registry.validate("sendMessageToChat", ["hi"])

    @pytest.mark.parametrize("raw", ["60", " 60 ", 60.0])
    def test_integer_coercion(self, registry, raw):
        args = registry.validate(
            "createTwitchPoll", {"title": "Best?", "choices": "a,b", "duration": raw}
        )
        assert args["duration"] == 60

    def test_boolean_is_not_an_integer(self, registry):
        with pytest.raises(ToolValidationError):
            registry.validate(
                "createTwitchPoll", {"title": "Best?", "choices": "a,b", "duration": True}
            )

    def test_null_optional_argument_is_dropped(self, registry):
        args = registry.validate(
            "timeoutUser", {"usernameOrDescriptor": "alice", "reason": None}
        )
        assert args == {"usernameOrDescriptor": "alice"}


class TestTimeoutDurationBounds:
    """timeoutUser duration must be a positive number of seconds, at most two weeks."""

    def test_schema_advertises_bounds(self, registry):
        tools = {tool["name"]: tool for tool in registry.mcp_tools()}
        duration = tools["timeoutUser"]["inputSchema"]["properties"]["duration"]
        assert duration["minimum"] == 1
        assert duration["maximum"] == MAX_TIMEOUT_SECONDS == 1_209_600

    @pytest.mark.parametrize("value", [-30, "-30", 0, MAX_TIMEOUT_SECONDS + 1])
    def test_out_of_range_rejected(self, registry, value):
        with pytest.raises(ToolValidationError, match=r"\(duration\)") as exc:
            registry.validate(
                "timeoutUser", {"usernameOrDescriptor": "alice", "duration": value}
            )
        assert exc.value.code == INVALID_PARAMS

    @pytest.mark.parametrize("value", [1, 600, MAX_TIMEOUT_SECONDS])
    def test_in_range_accepted(self, registry, value):
        args = registry.validate(
            "timeoutUser", {"usernameOrDescriptor": "alice", "duration": value}
        )
        assert args["duration"] == value
