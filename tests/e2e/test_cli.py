"""End-to-end tests for the dotboot command.

Resources are served from file:// URLs so no network is needed; the
repository stage is disabled unless a test builds a real checkout.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotboot.cli import app, main

runner = CliRunner()


def _write_config(tmp_path: Path, home: Path, source: Path, **extra) -> Path:
    remote = tmp_path / "remote"
    remote.mkdir(exist_ok=True)
    (remote / "git-completion.bash").write_text("# completion\n" * 10)
    (remote / "bash-prompt").write_text("PS1='\\u@\\h \\w $ '\n")
    completion_url = extra.get(
        "completion_url", (remote / "git-completion.bash").as_uri()
    )
    required = extra.get("required_tools", [])

    config = f"""
resources:
  - name: git-completion
    url: {completion_url}
    dest: {home}/.git-completion.bash
  - name: bash-prompt
    url: {(remote / "bash-prompt").as_uri()}
    dest: {home}/.bash-prompt
repository:
  enabled: false
sync:
  source: {source}
  dest: {home}
required_tools: {required}
profile:
  target: {home}/.bashrc
"""
    path = tmp_path / "dotboot.yaml"
    path.write_text(config)
    return path


@pytest.fixture
def home(tmp_path):
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    return home_dir


@pytest.fixture
def source(tmp_path):
    src = tmp_path / "dotfiles"
    src.mkdir()
    (src / "bootstrap.sh").write_text("#!/bin/bash\n")
    (src / ".aliases").write_text("alias ll='ls -l'\n")
    (src / ".inputrc").write_text("set completion-ignore-case on\n")
    return src


class TestFlags:
    """Flag handling and exit codes."""

    def test_help(self, capsys):
        assert main(["--help"]) == 0
        out = capsys.readouterr().out
        assert "--force" in out

    def test_short_help(self, capsys):
        assert main(["-h"]) == 0
        assert "--force" in capsys.readouterr().out

    def test_unknown_flag_exits_1(self, capsys):
        assert main(["--bogus"]) == 1
        captured = capsys.readouterr()
        assert "No such option" in captured.err
        assert "Usage" in captured.err
        assert captured.out == ""

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert "dotboot version" in capsys.readouterr().out


class TestRun:
    """Whole pipeline through the CLI."""

    def test_force_runs_every_stage(self, tmp_path, home, source):
        config = _write_config(tmp_path, home, source)

        result = runner.invoke(app, ["--force", "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert (home / ".git-completion.bash").read_text().startswith(
            "# completion"
        )
        assert (home / ".bash-prompt").exists()
        assert (home / ".aliases").read_text() == "alias ll='ls -l'\n"
        assert not (home / "bootstrap.sh").exists()
        bashrc = (home / ".bashrc").read_text().splitlines()
        assert "source ~/.git-completion.bash" in bashrc
        assert "source ~/.bash-prompt" in bashrc
        assert "Setup complete!" in result.output
        assert "source " + str(home / ".bashrc") in result.output

    def test_second_run_is_idempotent(self, tmp_path, home, source):
        config = _write_config(tmp_path, home, source)
        runner.invoke(app, ["-f", "-c", str(config)])
        bashrc_once = (home / ".bashrc").read_text()

        result = runner.invoke(app, ["-f", "-c", str(config)])

        assert result.exit_code == 0, result.output
        assert (home / ".bashrc").read_text() == bashrc_once
        assert "skipping download" in result.output
        assert "already in" in result.output

    def test_confirm_yes_syncs(self, tmp_path, home, source):
        config = _write_config(tmp_path, home, source)

        result = runner.invoke(app, ["-c", str(config)], input="y")

        assert result.exit_code == 0, result.output
        assert "Are you sure?" in result.output
        assert (home / ".inputrc").exists()

    def test_confirm_no_cancels_with_exit_0(self, tmp_path, home, source):
        config = _write_config(tmp_path, home, source)

        result = runner.invoke(app, ["-c", str(config)], input="n")

        assert result.exit_code == 0, result.output
        assert "Cancelled" in result.output
        assert not (home / ".aliases").exists()
        assert not (home / ".bashrc").exists()

    def test_fetch_failure_exits_1(self, tmp_path, home, source):
        config = _write_config(
            tmp_path,
            home,
            source,
            completion_url=(tmp_path / "nope.bash").as_uri(),
        )

        result = runner.invoke(app, ["-f", "-c", str(config)])

        assert result.exit_code == 1
        assert "Failed to download git-completion" in result.output
        assert not (home / ".aliases").exists()
        assert not (home / ".bashrc").exists()

    def test_missing_marker_exits_1(self, tmp_path, home, source):
        (source / "bootstrap.sh").unlink()
        config = _write_config(tmp_path, home, source)

        result = runner.invoke(app, ["-f", "-c", str(config)])

        assert result.exit_code == 1
        assert "Sync failed" in result.output
        assert not (home / ".aliases").exists()
        assert not (home / ".bashrc").exists()

    def test_missing_required_tool_exits_1(self, tmp_path, home, source):
        config = _write_config(
            tmp_path,
            home,
            source,
            required_tools=["dotboot-no-such-tool"],
        )

        result = runner.invoke(app, ["-f", "-c", str(config)])

        assert result.exit_code == 1
        assert "dotboot-no-such-tool" in result.output
        assert list(home.iterdir()) == []

    def test_invalid_config_exits_1(self, tmp_path):
        config = tmp_path / "broken.yaml"
        config.write_text("resources: [unclosed\n")

        result = runner.invoke(app, ["-f", "-c", str(config)])

        assert result.exit_code == 1
        assert "Could not read" in result.output
