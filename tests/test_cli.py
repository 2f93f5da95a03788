"""Unit tests for the command-line entry point (smoke_env.cli)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from smoke_env.cli import build_parser, main


class TestParser:
    @pytest.mark.unit
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    @pytest.mark.unit
    def test_prepare_rn_defaults(self):
        args = build_parser().parse_args(["prepare-rn", "res", "res/app", "app"])
        assert args.entry_point_folder == "ReactNativeSample"
        assert args.version is None

    @pytest.mark.unit
    def test_clean_up_multiple_workspaces(self):
        args = build_parser().parse_args(["clean-up", "--workspace", "a", "--workspace", "b"])
        assert args.workspace == ["a", "b"]


class TestMain:
    @pytest.mark.unit
    def test_set_ios_target(self, tmp_path: Path):
        (tmp_path / ".vscode").mkdir()
        launch = tmp_path / ".vscode" / "launch.json"
        launch.write_text(json.dumps({"configurations": [{"name": "Debug iOS"}]}), encoding="utf-8")

        main(["--artifacts", str(tmp_path / "artifacts"), "set-ios-target", str(tmp_path), "Debug iOS", "--target", "device"])
        assert json.loads(launch.read_text(encoding="utf-8"))["configurations"][0]["target"] == "device"

    @pytest.mark.unit
    def test_unknown_configuration_exits_1(self, tmp_path: Path):
        (tmp_path / ".vscode").mkdir()
        (tmp_path / ".vscode" / "launch.json").write_text(json.dumps({"configurations": []}), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--artifacts", str(tmp_path / "artifacts"), "set-ios-target", str(tmp_path), "Debug iOS"])
        assert exc_info.value.code == 1

    @pytest.mark.unit
    def test_rn_version_prints_result(self, tmp_path: Path):
        with patch(
            "smoke_env.provisioner.EnvironmentProvisioner.get_latest_supported_rn_version_for_expo",
            AsyncMock(return_value="0.59.10"),
        ) as lookup, patch("smoke_env.cli.console") as console:
            main(["--artifacts", str(tmp_path), "rn-version", "--sdk", "35"])
        lookup.assert_awaited_once_with("35")
        console.print.assert_called_once_with("0.59.10")

    @pytest.mark.unit
    def test_clean_up(self, tmp_path: Path):
        workspace = tmp_path / "app"
        workspace.mkdir()
        main(["--artifacts", str(tmp_path / "artifacts"), "clean-up", "--workspace", str(workspace),
              "--expo-cache-dir", str(tmp_path / "cache")])
        assert not workspace.exists()

    @pytest.mark.unit
    def test_patch_metro(self, tmp_path: Path):
        (tmp_path / "metro.config.js").write_text("module.exports = {};", encoding="utf-8")
        main(["--artifacts", str(tmp_path / "artifacts"), "patch-metro", str(tmp_path)])
        assert "watchFolders" in (tmp_path / "metro.config.js").read_text(encoding="utf-8")
