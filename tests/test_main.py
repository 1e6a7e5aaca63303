import pytest

from nexus_service import main as main_module
from nexus_service.main import main

WALLET = "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def cli(config_file, systemd, as_root):
    def run(*args):
        return main(["--config", str(config_file), *args])
    return run


def read_exec_start(unit_dir, name="nexus-network"):
    text = (unit_dir / f"{name}.service").read_text()
    return next(line for line in text.splitlines() if line.startswith("ExecStart="))


def test_no_arguments_prints_usage_and_fails(capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().err


@pytest.mark.parametrize("args", [["help"], ["--help"], ["-h"]])
def test_help(args, capsys):
    assert main(args) == 0
    out = capsys.readouterr().out
    assert "install-logserver" in out
    assert "EXAMPLES:" in out


def test_unknown_command_fails_with_status_1(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["frobnicate"])
    assert excinfo.value.code == 1
    assert "Usage:" in capsys.readouterr().err


def test_install_without_identity_fails(cli, systemd, unit_dir):
    with pytest.raises(SystemExit) as excinfo:
        cli("install")
    assert excinfo.value.code == 1
    assert systemd.calls == []
    assert list(unit_dir.iterdir()) == []


def test_install_with_both_identities_fails(cli):
    with pytest.raises(SystemExit) as excinfo:
        cli("install", "--node-id", "1", "--wallet", WALLET)
    assert excinfo.value.code == 1


@pytest.mark.parametrize("args", [
    ["--wallet", "0x1234"],
    ["--wallet", WALLET + "ff"],
    ["--node-id", "abc"],
])
def test_install_rejects_malformed_identity(cli, systemd, unit_dir, args, capsys):
    assert cli("install", *args) == 1
    err = capsys.readouterr().err
    assert "[ERROR] Invalid" in err
    assert systemd.calls == []
    assert list(unit_dir.iterdir()) == []


def test_wallet_install_then_start(cli, systemd, unit_dir, nexus_bin):
    assert cli("install", "--wallet", WALLET) == 0
    assert cli("start") == 0

    assert "nexus-network" in systemd.enabled
    assert "nexus-network" in systemd.active
    exec_start = read_exec_start(unit_dir)
    assert "start --headless" in exec_start
    assert "--node-id" not in exec_start
    assert systemd.ran(str(nexus_bin), "register-user", "--wallet-address", WALLET)
    assert systemd.ran(str(nexus_bin), "register-node")


def test_node_id_install_skips_registration(cli, systemd, unit_dir, nexus_bin):
    assert cli("install", "--node-id", "42") == 0

    assert "--node-id 42" in read_exec_start(unit_dir)
    assert not any(call[0] == str(nexus_bin) for call in systemd.calls)


def test_install_with_max_difficulty_is_accepted(cli, unit_dir, capsys):
    assert cli("install", "--node-id", "42", "--max-difficulty", "EXTRA_LARGE") == 0
    assert "not supported" in capsys.readouterr().err
    assert "EXTRA_LARGE" not in read_exec_start(unit_dir)


def test_reinstall_is_idempotent(cli, systemd):
    assert cli("install", "--node-id", "42") == 0
    assert cli("start") == 0
    systemd.failing.add(("stop", "nexus-network"))
    assert cli("install", "--node-id", "43") == 0


def test_start_before_install_fails(cli, capsys):
    assert cli("start") == 1
    assert "not installed" in capsys.readouterr().err


def test_restart_before_install_fails(cli):
    assert cli("restart") == 1


def test_stop_failure_still_succeeds(cli, systemd):
    systemd.failing.add(("stop", "nexus-network"))
    assert cli("stop") == 0


def test_status_exit_code_follows_unit_state(cli, systemd, capsys):
    assert cli("status") == 1
    assert "inactive (dead)" in capsys.readouterr().out

    systemd.active.add("nexus-network")
    assert cli("status") == 0
    assert "active (running)" in capsys.readouterr().out


def test_logs_prints_journal(cli, systemd, capsys):
    systemd.journal["nexus-network"] = [f"entry {i}" for i in range(100)]
    assert cli("logs", "3") == 0
    assert capsys.readouterr().out.splitlines() == ["entry 97", "entry 98", "entry 99"]

    assert cli("logs") == 0
    assert len(capsys.readouterr().out.splitlines()) == 50


@pytest.mark.parametrize("count", ["0", "-5", "ten"])
def test_logs_rejects_bad_line_count(cli, count):
    with pytest.raises(SystemExit) as excinfo:
        cli("logs", count)
    assert excinfo.value.code == 1


def test_remove_missing_unit_warns(cli, capsys):
    assert cli("remove") == 0
    assert "[WARNING] Service file not found" in capsys.readouterr().err


def test_remove_installed_unit(cli, systemd, unit_dir):
    assert cli("install", "--node-id", "42") == 0
    assert cli("remove") == 0
    assert not (unit_dir / "nexus-network.service").exists()
    assert "nexus-network" not in systemd.enabled


def test_logserver_commands(cli, systemd, unit_dir, capsys):
    assert cli("start-logserver") == 1
    assert cli("install-logserver") == 0
    assert "serve-logserver --port 8080" in read_exec_start(unit_dir, "nexus-logserver")
    assert cli("start-logserver") == 0
    assert "nexus-logserver" in systemd.active

    systemd.journal["nexus-logserver"] = ["127.0.0.1 - GET / HTTP/1.1 200"]
    capsys.readouterr()
    assert cli("logs-logserver") == 0
    assert "GET / HTTP/1.1 200" in capsys.readouterr().out

    assert cli("stop-logserver") == 0
    assert cli("remove-logserver") == 0
    assert not (unit_dir / "nexus-logserver.service").exists()
    assert cli("remove-logserver") == 0


def test_missing_privileges_fail(config_file, systemd, as_user):
    systemd.sudo_available = False
    assert main(["--config", str(config_file), "start"]) == 1


def test_serve_logserver_uses_cli_overrides(cli, monkeypatch):
    seen = {}

    class RecordingServer:
        def __init__(self, reporter, port, retry_delay):
            seen.update(reporter=reporter, port=port, retry_delay=retry_delay)

        def serve_forever(self):
            seen["served"] = True

    monkeypatch.setattr(main_module, "LogServer", RecordingServer)

    assert cli("serve-logserver", "--port", "9100", "--nexus-bin", "/opt/nexus") == 0
    assert seen["port"] == 9100
    assert seen["retry_delay"] == 5
    assert seen["reporter"].nexus_client.binary == "/opt/nexus"
    assert seen["reporter"].service_name == "nexus-network"
    assert seen["served"]


def test_unexpected_errors_exit_1(cli, monkeypatch):
    def explode(self):
        raise RuntimeError("boom")

    monkeypatch.setattr(main_module.NexusServiceApp, "start_service", explode)
    assert cli("start") == 1


@pytest.mark.parametrize("port", ["70000", "-1", "http"])
def test_serve_logserver_rejects_bad_port(cli, port):
    with pytest.raises(SystemExit) as excinfo:
        cli("serve-logserver", "--port", port)
    assert excinfo.value.code == 1
