"""Tests for the command line entry point."""

import json

import httpx
from click.testing import CliRunner

from sketch_jira import __version__
from sketch_jira.cli import cli
from sketch_jira.config import PluginConfig
from sketch_jira.connectors import ConnectorConfig, HTTPConnector, JiraClient

BASE = "https://jira.example.com"


class TestCli:
    """Option handling that needs no JIRA instance."""

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("attachments", "comment", "download", "filters", "issues", "upload", "users", "whoami"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unconfigured_exits(self, monkeypatch):
        monkeypatch.setattr("sketch_jira.cli.config", PluginConfig(jira_url="", jira_token=""))

        result = CliRunner().invoke(cli, ["whoami"])

        assert result.exit_code == 1
        assert "SKETCH_JIRA_URL" in result.output


class TestDownload:
    """download against a mock transport."""

    def test_download_with_progress(self, monkeypatch, tmp_path):
        body = b"PDF" * 10_000

        def handler(request):
            return httpx.Response(200, content=body)

        def from_config(cls, config):
            connector = HTTPConnector(ConnectorConfig(base_url=BASE, transport=httpx.MockTransport(handler)))
            return cls(connector, download_dir=tmp_path)

        monkeypatch.setattr("sketch_jira.cli.config", PluginConfig(jira_url=BASE, jira_token="t0k"))
        monkeypatch.setattr(JiraClient, "from_config", classmethod(from_config))

        result = CliRunner().invoke(cli, ["download", f"{BASE}/secure/attachment/10/brief.pdf", "brief.pdf"])

        assert result.exit_code == 0, result.output
        downloaded = list(tmp_path.glob("attachment-*/brief.pdf"))
        assert len(downloaded) == 1
        assert downloaded[0].read_bytes() == body
        assert str(downloaded[0]) in result.output

    def test_download_json_output(self, monkeypatch, tmp_path):
        def handler(request):
            return httpx.Response(200, content=b"abc")

        def from_config(cls, config):
            connector = HTTPConnector(ConnectorConfig(base_url=BASE, transport=httpx.MockTransport(handler)))
            return cls(connector, download_dir=tmp_path)

        monkeypatch.setattr("sketch_jira.cli.config", PluginConfig(jira_url=BASE, jira_token="t0k"))
        monkeypatch.setattr(JiraClient, "from_config", classmethod(from_config))

        result = CliRunner().invoke(cli, ["--json", "download", f"{BASE}/a/notes.txt", "notes.txt"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["path"].endswith("notes.txt")
