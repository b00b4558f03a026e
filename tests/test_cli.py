import importlib
import io
import sys

import pytest

# run.py is driven in-process; start_server is patched so no socket is bound.


@pytest.fixture()
def run_module(monkeypatch):
    # fresh import so module-level state (VERSION, colour flag) is re-read
    if "run" in sys.modules:
        del sys.modules["run"]
    mod = importlib.import_module("run")
    return mod


@pytest.fixture()
def fake_server(monkeypatch):
    calls = {}

    def fake_start_server(host, port, debug):
        calls["called"] = True
        calls["host"] = host
        calls["port"] = port
        calls["debug"] = debug

    import delve.server as server_mod

    monkeypatch.setattr(server_mod, "start_server", fake_start_server)
    return calls


def test_version_flag_outputs_version(run_module, capsys):
    ver = run_module.__version__
    # argparse handles --version and exits by raising SystemExit
    with pytest.raises(SystemExit) as exc:
        run_module.parse_args(["--version"])
    assert exc.value.code == 0
    captured = capsys.readouterr().out
    assert ver in captured
    assert "Delve Server" in captured


def test_default_command_is_server(run_module):
    ns = run_module.parse_args([])
    assert ns.command == "server"


def test_server_main_invokes_start_server(monkeypatch, run_module, fake_server):
    monkeypatch.setenv("PORT", "5555")  # ensure env port path is exercised
    monkeypatch.setenv("HOST", "127.0.0.1")
    exit_code = run_module.main(["server"])
    assert exit_code == 0
    assert fake_server == {"called": True, "host": "127.0.0.1", "port": 5555, "debug": False}


def test_server_flags_override_env(monkeypatch, run_module, fake_server):
    monkeypatch.setenv("PORT", "5555")
    run_module.main(["server", "--port", "6010", "--host", "localhost", "--debug"])
    assert fake_server["port"] == 6010
    assert fake_server["host"] == "localhost"
    assert fake_server["debug"] is True


def test_env_file_argument(monkeypatch, tmp_path, run_module, fake_server):
    # setenv first so teardown restores whatever the .env load leaves behind
    monkeypatch.setenv("PORT", "1")
    monkeypatch.delenv("PORT")
    env_file = tmp_path / ".env"
    env_file.write_text("PORT=6001\n")
    run_module.main(["--env-file", str(env_file), "server"])
    assert fake_server["port"] == 6001


def test_simulate_runs_bot_headless(run_module):
    out = io.StringIO()
    result = run_module.run_simulation(seed=7, turns=50, out=out)
    assert result["ticks"] <= 50
    assert result["turns"] >= 1
    text = out.getvalue()
    assert "depth=" in text and "score=" in text


def test_simulate_subcommand(run_module, capsys):
    assert run_module.main(["simulate", "--seed", "3", "--turns", "5", "--quiet", "--show-map"]) == 0
    out = capsys.readouterr().out
    assert "turns=" in out
    assert "#" in out


@pytest.mark.db_isolation
def test_config_get_and_set(run_module, capsys):
    assert run_module.main(["config-get", "motd"]) == 1
    assert run_module.main(["config-set", "motd", "hello"]) == 0
    capsys.readouterr()
    assert run_module.main(["config-get", "motd"]) == 0
    assert capsys.readouterr().out.strip().endswith("hello")


@pytest.mark.db_isolation
def test_scores_command(run_module, capsys):
    from delve.services import persistence
    from delve.services.events import RunSummary

    assert run_module.main(["scores"]) == 0
    assert "No high scores yet." in capsys.readouterr().out
    persistence.record_score("Ann", RunSummary(4, 5, "Killed by a Blob", "Thief"))
    assert run_module.main(["scores"]) == 0
    assert "Ann" in capsys.readouterr().out
