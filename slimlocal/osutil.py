"""Helpers for running external commands."""

from __future__ import annotations

import os
import shutil
import subprocess


def run_privileged(name: str, *args: str) -> bytes:
    """Run a command as root (through sudo unless already root); return combined output.

    Raises subprocess.CalledProcessError on a non-zero exit, carrying the output.
    """
    argv = [name, *args]
    if os.geteuid() != 0:
        argv = ["sudo", *argv]
    proc = subprocess.run(argv, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False)
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, argv, output=proc.stdout)
    return proc.stdout


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None