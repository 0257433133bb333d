import sys
from pathlib import Path

import pytest

from pulumi_entrypoint.pulumicli import NOT_EXECUTABLE_RC, NOT_FOUND_RC, PulumiCli, PulumiCliError, shell_rc

# Stand-in for the pulumi binary: the interpreter running the tests.
PY = sys.executable


def test_tee_preserves_exit_code_and_captures_both_streams(tmp_path, capsys):
    out = tmp_path / "out.log"
    cli = PulumiCli(binary=PY)
    rc = cli.tee(
        ["-c", "import sys; print('to stdout'); sys.stdout.flush(); "
               "print('to stderr', file=sys.stderr); sys.exit(2)"],
        out,
    )
    assert rc == 2
    captured = out.read_text()
    assert "to stdout" in captured
    assert "to stderr" in captured
    assert "to stdout" in capsys.readouterr().out


def test_tee_success(tmp_path):
    out = tmp_path / "out.log"
    assert PulumiCli(binary=PY).tee(["-c", "print('ok')"], out) == 0
    assert out.read_text() == "ok\n"


def test_tee_missing_binary(tmp_path):
    out = tmp_path / "out.log"
    rc = PulumiCli(binary=str(tmp_path / "no-such-pulumi")).tee(["preview"], out)
    assert rc == NOT_FOUND_RC
    assert "cannot execute" in out.read_text()


def test_text_raises_with_exit_code():
    with pytest.raises(PulumiCliError) as exc:
        PulumiCli(binary=PY).text(["-c", "import sys; sys.exit(4)"])
    assert exc.value.rc == 4


def test_check_raises_on_failure():
    with pytest.raises(PulumiCliError) as exc:
        PulumiCli(binary=PY).check(["-c", "raise SystemExit(5)"])
    assert exc.value.rc == 5


def test_check_missing_binary(tmp_path):
    with pytest.raises(PulumiCliError) as exc:
        PulumiCli(binary=str(tmp_path / "no-such-pulumi")).check(["stack", "select", "dev"])
    assert exc.value.rc == NOT_FOUND_RC


def test_env_overlay_reaches_subprocess():
    cli = PulumiCli(binary=PY, env={"PULUMI_CI_SYSTEM": "GitHub"})
    assert cli.text(["-c", "import os; print(os.environ['PULUMI_CI_SYSTEM'])"]) == "GitHub"


def test_runs_in_project_dir(tmp_path):
    cli = PulumiCli(binary=PY, cwd=tmp_path)
    out = cli.text(["-c", "import os; print(os.getcwd())"])
    assert Path(out).resolve() == tmp_path.resolve()


def test_describe_quotes_arguments():
    assert PulumiCli().describe(["up", "--message", "two words"]) == "pulumi up --message 'two words'"


@pytest.fixture
def not_executable(tmp_path):
    path = tmp_path / "pulumi"
    path.write_text("#!/bin/sh\necho never\n")
    path.chmod(0o644)
    return str(path)


def test_tee_not_executable(tmp_path, not_executable):
    out = tmp_path / "out.log"
    assert PulumiCli(binary=not_executable).tee(["preview"], out) == NOT_EXECUTABLE_RC
    assert "cannot execute" in out.read_text()


def test_check_not_executable(not_executable):
    with pytest.raises(PulumiCliError) as exc:
        PulumiCli(binary=not_executable).check(["stack", "select", "dev"])
    assert exc.value.rc == NOT_EXECUTABLE_RC


def test_run_not_executable(not_executable):
    assert PulumiCli(binary=not_executable).run(["stack", "ls"]).rc == NOT_EXECUTABLE_RC


@pytest.mark.parametrize("rc, expected", [(0, 0), (2, 2), (-9, 137), (-15, 143)])
def test_shell_rc(rc, expected):
    assert shell_rc(rc) == expected
