"""
Pytest configuration and shared fixtures for riff-cli tests
"""

import os
import stat
import sys

import pytest
from typer.testing import CliRunner

from riff_cli.models import InitOptions


FAKE_KUBECTL = """#!/bin/sh
echo "$*" >> "$FAKE_KUBECTL_LOG"
case "$1" in
  get)
    if [ -n "$FAKE_KUBECTL_POD" ]; then
      printf '%s' "$FAKE_KUBECTL_POD"
      exit 0
    fi
    echo "error: array index out of bounds" >&2
    exit 1
    ;;
  logs)
    for arg in "$@"; do
      if [ "$arg" = "-f" ]; then
        i=1
        while [ "$i" -le "${FAKE_KUBECTL_LINES:-3}" ]; do
          echo "streamed line $i"
          i=$((i + 1))
        done
        exit "${FAKE_KUBECTL_FOLLOW_STATUS:-0}"
      fi
    done
    if [ -n "$FAKE_KUBECTL_LOGS_ERROR" ]; then
      echo "$FAKE_KUBECTL_LOGS_ERROR" >&2
      exit 1
    fi
    echo "first log line"
    echo "second log line"
    ;;
esac
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep the user's ~/.riff.yaml and RIFF_* variables out of the tests"""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("RIFF_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def runner():
    """Create CLI test runner"""
    return CliRunner()


@pytest.fixture
def function_dir(tmp_path):
    """An empty function directory named 'square'"""
    path = tmp_path / "square"
    path.mkdir()
    return path


@pytest.fixture
def sample_options(function_dir):
    """Validated options for a python function in function_dir"""
    (function_dir / "square.py").write_text("def square(x):\n    return x * x\n")
    return InitOptions(
        file_path=str(function_dir),
        function_name="square",
        artifact="square.py",
        handler="square",
        user_account="acme",
        input="numbers",
        output="squares",
        protocol="stdio",
    )


class FakeKubectl:
    """Handle on the fake kubectl executable placed on PATH"""

    def __init__(self, bin_dir, log_file, monkeypatch):
        self.bin_dir = bin_dir
        self.log_file = log_file
        self.monkeypatch = monkeypatch

    @property
    def calls(self):
        if not self.log_file.exists():
            return []
        return self.log_file.read_text().splitlines()

    def set_pod(self, pod):
        self.monkeypatch.setenv("FAKE_KUBECTL_POD", pod)

    def set(self, name, value):
        self.monkeypatch.setenv(f"FAKE_KUBECTL_{name}", str(value))


@pytest.fixture
def fake_kubectl(tmp_path, monkeypatch):
    """Put a scripted kubectl first on PATH that records its arguments"""
    if sys.platform == "win32":
        pytest.skip("fake kubectl is a POSIX shell script")

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "kubectl"
    script.write_text(FAKE_KUBECTL)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    log_file = tmp_path / "kubectl-calls.log"
    monkeypatch.setenv("FAKE_KUBECTL_LOG", str(log_file))
    monkeypatch.delenv("FAKE_KUBECTL_POD", raising=False)
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    return FakeKubectl(bin_dir, log_file, monkeypatch)
