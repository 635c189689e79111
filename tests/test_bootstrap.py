import importlib.util
from pathlib import Path

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "bootstrap.py"


def load_bootstrap():
    spec = importlib.util.spec_from_file_location("bootstrap", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_install_steps_install_package_then_chromium():
    bootstrap = load_bootstrap()
    steps = bootstrap.install_steps("/usr/bin/python3")
    assert steps == [
        ("capture-website", ["/usr/bin/python3", "-m", "pip", "install", "-e", str(SCRIPT.parent.parent)]),
        ("Chromium", ["/usr/bin/python3", "-m", "playwright", "install", "chromium"]),
    ]


def test_main_stops_at_first_failure(monkeypatch, capsys):
    bootstrap = load_bootstrap()
    calls = []

    class Result:
        returncode = 1

    def run(cmd):
        calls.append(cmd)
        return Result()

    monkeypatch.setattr(bootstrap.subprocess, "run", run)
    assert bootstrap.main() == 1
    assert len(calls) == 1
    assert "failed" in capsys.readouterr().err
