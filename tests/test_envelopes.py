import pytest

from services.mcp.envelopes import (
    CleanupRequest,
    ConfigurationSnapshot,
    CustomCall,
    DiscoveryRequest,
    JsonRpcCall,
    decode_request,
)
from shared.config.credentials import MissingCredentialError


class TestDecodeRequest:
    def test_get_is_discovery(self):
        assert isinstance(decode_request("GET"), DiscoveryRequest)

    def test_delete_is_cleanup(self):
        assert isinstance(decode_request("delete"), CleanupRequest)

    def test_jsonrpc_call(self):
        request = decode_request(
            "POST",
            {"jsonrpc": "2.0", "id": 7, "method": "tools/list"},
            {"twitch.channel": "c"},
        )
        assert isinstance(request, JsonRpcCall)
        assert request.id == 7
        assert request.method == "tools/list"
        assert request.params is None
        assert request.config_params == {"twitch.channel": "c"}
        assert not request.is_notification

    def test_notification_has_no_id(self):
        request = decode_request("POST", {"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert request.is_notification

    def test_custom_call(self):
        request = decode_request("POST", {"tool": "analyzeChat"})
        assert request == CustomCall(tool="analyzeChat", params={}, config_params={})

    def test_custom_call_without_tool(self):
        request = decode_request("POST", {"params": {"message": "hi"}})
        assert request.tool is None
        assert request.params == {"message": "hi"}


class TestConfigurationSnapshot:
    def test_from_params(self, config_params):
        creds = ConfigurationSnapshot.from_params(config_params).validate()
        assert creds.channel == "streamer"
        assert creds.bearer_token == "abc123"

    def test_repr_hides_token(self, config_params):
        assert "abc123" not in repr(ConfigurationSnapshot.from_params(config_params))

    @pytest.mark.parametrize(
        "key,message",
        [
            ("twitch.channel", "twitch.channel"),
            ("twitch.auth", "twitch.auth (OAuth token)"),
            ("twitch.clientId", "twitch.clientId"),
            ("twitch.broadcasterId", "twitch.broadcasterId"),
        ],
    )
    def test_missing_key(self, config_params, key, message):
        config_params[key] = "  "
        with pytest.raises(MissingCredentialError) as exc:
            ConfigurationSnapshot.from_params(config_params).validate()
        assert str(exc.value) == f"Missing required parameter: {message}"

    def test_first_missing_key_reported(self):
        with pytest.raises(MissingCredentialError, match="twitch.channel"):
            ConfigurationSnapshot.from_params({}).validate()
