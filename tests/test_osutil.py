import subprocess
from unittest import mock

import pytest

from slimlocal.osutil import command_exists, run_privileged


def test_command_exists_true_for_shell():
    assert command_exists("sh") is True


def test_command_exists_false_for_missing():
    assert command_exists("definitely-not-a-real-command-xyz") is False


def test_run_privileged_as_root_runs_directly(monkeypatch):
    monkeypatch.setattr("os.geteuid", lambda: 0)
    assert run_privileged("sh", "-c", "echo hi") == b"hi\n"


def test_run_privileged_raises_with_output(monkeypatch):
    monkeypatch.setattr("os.geteuid", lambda: 0)
    with pytest.raises(subprocess.CalledProcessError) as info:
        run_privileged("sh", "-c", "echo oops; exit 3")
    assert info.value.returncode == 3
    assert info.value.output == b"oops\n"


def test_run_privileged_uses_sudo_when_not_root(monkeypatch):
    monkeypatch.setattr("os.geteuid", lambda: 1000)
    done = subprocess.CompletedProcess(args=[], returncode=0, stdout=b"listed\n")
    with mock.patch("subprocess.run", return_value=done) as run:
        output = run_privileged("iptables", "-L")
    assert output == b"listed\n"
    assert run.call_args.args[0] == ["sudo", "iptables", "-L"]