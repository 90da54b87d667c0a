import subprocess
import sys

import pytest

from bluetool.linux.cmdexec import cmd_exec


def test_returns_standard_output():
    out = cmd_exec(sys.executable, "-c", "print('hello')")
    assert out.strip() == "hello"


def test_passes_every_argument():
    out = cmd_exec(
        sys.executable, "-c", "import sys; print(' '.join(sys.argv[1:]))", "a", "b"
    )
    assert out.split() == ["a", "b"]


def test_combines_stderr_with_stdout():
    out = cmd_exec(
        sys.executable, "-c", "import sys; sys.stderr.write('oops'); sys.stderr.flush()"
    )
    assert "oops" in out


def test_missing_executable_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))
    with pytest.raises(FileNotFoundError):
        cmd_exec("definitely-not-a-real-tool")


def test_failing_command_raises():
    with pytest.raises(subprocess.CalledProcessError) as info:
        cmd_exec(sys.executable, "-c", "import sys; sys.exit(3)")
    assert info.value.returncode == 3


def test_no_arguments_raises():
    with pytest.raises(ValueError):
        cmd_exec()