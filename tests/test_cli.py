"""Tests for CLI argument parsing and command dispatch."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

import cli


class TestParseArgs:

    def test_test_command(self):
        args = cli.parse_args(["test"])
        assert args.command == "test"
        assert args.config == Path("config.toml")

    def test_list_requires_known_resource(self):
        assert cli.parse_args(["list", "roles"]).resource == "roles"
        with pytest.raises(SystemExit):
            cli.parse_args(["list", "users"])

    def test_find(self):
        args = cli.parse_args(["--config", "tenant.toml", "find", "resource-servers", "https://api"])
        assert args.config == Path("tenant.toml")
        assert args.resource == "resource-servers"
        assert args.query == "https://api"

    def test_export_output_dir(self):
        args = cli.parse_args(["export", "--output-dir", "snap"])
        assert args.output_dir == Path("snap")

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])


def _mock_client(**methods):
    mgmt = MagicMock()
    mgmt.domain = "test.auth0.com"
    mgmt.audience = "https://test.auth0.com/api/v2/"
    for name, value in methods.items():
        setattr(mgmt, name, AsyncMock(return_value=value))
    return mgmt


class TestCommands:

    @pytest.mark.asyncio
    async def test_connection_ok(self):
        mgmt = _mock_client(test_connection={"success": True})
        assert await cli._cmd_test(mgmt) == 0

    @pytest.mark.asyncio
    async def test_connection_failure_exit_code(self):
        mgmt = _mock_client(test_connection={"success": False, "error": "Failed to get access token: 401"})
        assert await cli._cmd_test(mgmt) == 1

    @pytest.mark.asyncio
    async def test_list_calls_matching_method(self):
        mgmt = _mock_client(list_roles=[{"id": "role1", "name": "admin"}])
        assert await cli._cmd_list(mgmt, "roles") == 0
        mgmt.list_roles.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_find_not_found(self):
        mgmt = _mock_client(find_application_by_name=None)
        assert await cli._cmd_find(mgmt, "applications", "Ghost") == 1
        mgmt.find_application_by_name.assert_awaited_once_with("Ghost")

    @pytest.mark.asyncio
    async def test_find_uses_identifier_for_resource_servers(self):
        mgmt = _mock_client(find_resource_server_by_identifier={"id": "rs1", "identifier": "https://api"})
        assert await cli._cmd_find(mgmt, "resource-servers", "https://api") == 0
        mgmt.find_resource_server_by_identifier.assert_awaited_once_with("https://api")

    @pytest.mark.asyncio
    async def test_export_writes_every_resource(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cli, "logger", MagicMock())
        mgmt = _mock_client(
            list_applications=[{"client_id": "app1", "name": "App"}],
            list_connections=[],
            list_actions=[],
            list_resource_servers=[],
            list_roles=[{"id": "role1", "name": "admin"}],
        )
        config = MagicMock()
        config.tenant.domain = "test.auth0.com"

        assert await cli._cmd_export(mgmt, config, tmp_path) == 0

        latest = sorted(p.name for p in (tmp_path / "latest").iterdir())
        assert latest == [
            "actions_latest.csv",
            "applications_latest.csv",
            "connections_latest.csv",
            "resource_servers_latest.csv",
            "roles_latest.csv",
        ]

    @pytest.mark.asyncio
    async def test_run_reports_configuration_error(self, tmp_path):
        args = cli.parse_args(["--config", str(tmp_path / "missing.toml"), "test"])
        assert await cli.run(args) == 1
