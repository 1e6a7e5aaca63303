from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import pytest
import yaml

from nexus_service.utils.privilege_helper import PrivilegeHelper

NEXUS_VERSION = "nexus-network 0.10.17"


class FakeSystemd:
    """Stands in for subprocess.run, simulating systemctl, journalctl, sudo and the node binary.

    Unit state lives in the ``active``, ``enabled`` and ``restarting`` sets. Commands listed in
    ``failing`` (as tuples such as ``("stop", "nexus-network")`` or
    ``("register-node",)``) exit non-zero.
    """

    def __init__(self, nexus_bin: Path):
        self.nexus_bin = str(nexus_bin)
        self.active: set[str] = set()
        self.enabled: set[str] = set()
        self.restarting: set[str] = set()
        self.failing: set[tuple] = set()
        self.journal: dict[str, list[str]] = {}
        self.sudo_available = True
        self.raw_calls: list[list[str]] = []
        self.calls: list[list[str]] = []

    def __call__(self, cmd, *args, input=None, capture_output=False, text=False,
                 timeout=None, check=False, **kwargs):
        cmd = [str(part) for part in cmd]
        self.raw_calls.append(cmd)

        if cmd[0] == "sudo":
            if cmd[1:] == ["-n", "true"]:
                return self._finish(cmd, 0 if self.sudo_available else 1, "", check)
            cmd = cmd[1:]

        self.calls.append(cmd)
        returncode, stdout = self._handle(cmd, input)
        return self._finish(cmd, returncode, stdout, check)

    def _finish(self, cmd, returncode, stdout, check):
        stderr = "" if returncode == 0 else f"{cmd[0]}: simulated failure"
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, cmd, output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    def _handle(self, cmd, input):
        program = cmd[0]
        if program == "systemctl":
            return self._systemctl(cmd[1:])
        if program == "journalctl":
            unit = cmd[cmd.index("-u") + 1]
            lines = int(cmd[cmd.index("-n") + 1])
            entries = self.journal.get(unit, [])[-lines:]
            if ("journalctl", unit) in self.failing:
                return 1, ""
            return 0, "".join(f"{entry}\n" for entry in entries)
        if program == "tee":
            Path(cmd[1]).write_text(input)
            return 0, input
        if program == "rm":
            Path(cmd[-1]).unlink(missing_ok=True)
            return 0, ""
        if program == self.nexus_bin:
            if cmd[1] == "--version":
                return 0, f"{NEXUS_VERSION}\n"
            if (cmd[1],) in self.failing:
                return 1, ""
            return 0, ""
        raise FileNotFoundError(2, "No such file or directory", program)

    def _systemctl(self, args):
        action = args[0]
        if action == "daemon-reload":
            return (1 if ("daemon-reload",) in self.failing else 0), ""

        unit = args[2] if args[1] == "--quiet" else args[1]
        if (action, unit) in self.failing:
            return 1, ""

        if action == "is-enabled":
            return (0 if unit in self.enabled else 1), ""
        if action in ("start", "restart"):
            self.active.add(unit)
        elif action == "stop":
            self.active.discard(unit)
            self.restarting.discard(unit)
        elif action == "enable":
            self.enabled.add(unit)
        elif action == "disable":
            self.enabled.discard(unit)
        elif action == "show":
            if unit in self.restarting:
                return 0, "activating\n"
            return 0, ("active\n" if unit in self.active else "inactive\n")
        elif action == "status":
            state = "active (running)" if unit in self.active else "inactive (dead)"
            report = f"* {unit}.service - Nexus Network Node\n     Active: {state}\n"
            return (0 if unit in self.active else 3), report
        return 0, ""

    def ran(self, *cmd) -> bool:
        return list(cmd) in self.calls


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def nexus_bin(tmp_path) -> Path:
    path = tmp_path / "bin" / "nexus-network"
    path.parent.mkdir()
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(PrivilegeHelper, "is_root", staticmethod(lambda: True))


@pytest.fixture
def as_user(monkeypatch):
    monkeypatch.setattr(PrivilegeHelper, "is_root", staticmethod(lambda: False))


@pytest.fixture
def systemd(monkeypatch, nexus_bin) -> FakeSystemd:
    fake = FakeSystemd(nexus_bin)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def unit_dir(tmp_path) -> Path:
    path = tmp_path / "units"
    path.mkdir()
    return path


@pytest.fixture
def config_file(tmp_path, nexus_bin, unit_dir) -> Path:
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "version": "1.0",
        "settings": {
            "nexus_bin": str(nexus_bin),
            "unit_dir": str(unit_dir),
            "user": "nexus",
            "work_dir": str(work_dir),
            "port": 8080,
        },
    }))
    return path


@pytest.fixture
def config_manager(config_file):
    from nexus_service.core.config_manager import ConfigManager

    manager = ConfigManager(str(config_file))
    assert manager.load_config()
    return manager


@pytest.fixture
def app(config_manager, systemd, as_root):
    from nexus_service.app import NexusServiceApp

    return NexusServiceApp(config_manager)
