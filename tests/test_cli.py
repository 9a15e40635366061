import pytest
from click.testing import CliRunner

from spinline import __version__
from spinline.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def _write(tmp_path, text, name="workflow.yml"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_run_success(runner, tmp_path):
    path = _write(tmp_path, "steps:\n  - {name: ok, command: 'true'}\n")
    result = runner.invoke(cli, ["run", "-f", str(path)])
    assert result.exit_code == 0, result.output
    assert "RunSuccess" in result.output
    assert "ok: SUCCESS" in result.output


def test_run_stop_on_fail_exits_non_zero(runner, tmp_path):
    path = _write(
        tmp_path,
        "steps:\n"
        "  - {name: fail, command: 'false', stopOnFail: true}\n"
        "  - {name: after, command: 'true'}\n",
    )
    result = runner.invoke(cli, ["run", "--file", str(path)])
    assert result.exit_code == 1
    assert "after RunRequested" not in result.output


def test_run_continue_on_fail_exits_zero(runner, tmp_path):
    path = _write(
        tmp_path,
        "steps:\n"
        "  - {name: fail, command: 'false'}\n"
        "  - {name: after, command: 'true'}\n",
    )
    result = runner.invoke(cli, ["run", "-f", str(path)])
    assert result.exit_code == 0, result.output
    assert "after RunSuccess" in result.output
    assert "fail: FAILED" in result.output


def test_run_strict_exits_non_zero_on_any_failed_step(runner, tmp_path):
    path = _write(
        tmp_path,
        "steps:\n"
        "  - {name: fail, command: 'false'}\n"
        "  - {name: after, command: 'true'}\n",
    )
    result = runner.invoke(cli, ["run", "-f", str(path), "--strict"])
    assert result.exit_code == 1
    assert "after RunSuccess" in result.output
    assert "fail: FAILED" in result.output


def test_run_finds_file_without_suffix(runner, tmp_path):
    _write(tmp_path, "steps:\n  - {name: ok, command: 'true'}\n")
    result = runner.invoke(cli, ["run", "-f", str(tmp_path / "workflow")])
    assert result.exit_code == 0, result.output


def test_run_missing_file(runner, tmp_path):
    result = runner.invoke(cli, ["run", "-f", str(tmp_path / "nope.yml")])
    assert result.exit_code == 2
    assert "Workflow file not found" in result.output


def test_run_invalid_document(runner, tmp_path):
    path = _write(tmp_path, "steps:\n  - {command: ls}\n")
    result = runner.invoke(cli, ["run", "-f", str(path)])
    assert result.exit_code == 2
    assert "missing 'name'" in result.output


def test_run_timeout_flag(runner, tmp_path):
    path = _write(tmp_path, "steps:\n  - {name: slow, command: sleep, args: ['10'], stopOnFail: true}\n")
    result = runner.invoke(cli, ["run", "-f", str(path), "--timeout", "100ms"])
    assert result.exit_code == 1
    assert "RunTimeout" in result.output


def test_run_rejects_bad_timeout(runner, tmp_path):
    path = _write(tmp_path, "steps: []\n")
    result = runner.invoke(cli, ["run", "-f", str(path), "--timeout", "soon"])
    assert result.exit_code == 2


def test_validate(runner, tmp_path):
    path = _write(
        tmp_path,
        "version: '3'\n"
        "steps:\n"
        "  - {name: build, command: make, args: [all], timeout: 90s, stopOnFail: true}\n",
    )
    result = runner.invoke(cli, ["validate", "-f", str(path)])
    assert result.exit_code == 0, result.output
    assert "build: make all (timeout 1m30s) [stopOnFail]" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["version"])
    assert result.output.strip() == __version__
