"""Tests for settings loaded from the environment."""

import pytest

from graphsync.adapters.event_channel import InMemoryEventChannel
from graphsync.config import EditorSettings
from graphsync.editor import AgentGraphEditor


class TestEditorSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "GRAPHSYNC_SERVER_URL",
            "GRAPHSYNC_TIMEOUT",
            "GRAPHSYNC_PASS_DATA_TO_BEADS",
            "GRAPHSYNC_LOG_LEVEL",
            "GRAPHSYNC_LOG_JSON",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = EditorSettings.from_env()
        assert settings == EditorSettings()
        assert settings.pass_data_to_beads

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GRAPHSYNC_SERVER_URL", "https://agents.example.com/api")
        monkeypatch.setenv("GRAPHSYNC_TIMEOUT", "2.5")
        monkeypatch.setenv("GRAPHSYNC_PASS_DATA_TO_BEADS", "False")
        monkeypatch.setenv("GRAPHSYNC_LOG_JSON", "true")

        settings = EditorSettings.from_env()
        assert settings.server_url == "https://agents.example.com/api"
        assert settings.timeout == 2.5
        assert not settings.pass_data_to_beads
        assert settings.log_json


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_builds_backend_client(self, monkeypatch):
        configured = []
        monkeypatch.setattr(
            "graphsync.editor.configure_logging",
            lambda level, json: configured.append((level, json)),
        )
        settings = EditorSettings(server_url="http://backend.test/api/", timeout=3.0)
        editor = AgentGraphEditor.from_settings(InMemoryEventChannel(), settings=settings, flow_id="graph-1")

        assert editor.api.base_url == "http://backend.test/api"
        assert editor.api.timeout == 3.0
        assert editor.navigation.flow_id == "graph-1"
        assert configured == [("INFO", False)]
        await editor.api.aclose()
