import logging
import runpy
import sys

import pytest
from typer.testing import CliRunner


def test_package_exposes_version_and_app():
    import polytherm
    from polytherm.cli import app

    assert polytherm.__version__ == "0.1.0"
    assert polytherm.app is app


def test_main_runs_typer_app(monkeypatch):
    import polytherm.cli as cli

    seen = []
    monkeypatch.setattr(cli, "app", lambda: seen.append("app"))
    cli.main()
    assert seen == ["app"]


def test_python_m_polytherm_calls_main(monkeypatch):
    import polytherm.cli as cli

    seen = []
    monkeypatch.setattr(cli, "main", lambda: seen.append("main"))

    # Re-execute the module body.
    sys.modules.pop("polytherm.__main__", None)
    runpy.run_module("polytherm.__main__", run_name="__main__")
    assert seen == ["main"]


def test_cli_module_guard_exits_cleanly_on_help(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["polytherm", "--help"])
    sys.modules.pop("polytherm.cli", None)
    with pytest.raises(SystemExit) as e:
        runpy.run_module("polytherm.cli", run_name="__main__")
    assert e.value.code == 0


def test_verbose_flag_enables_debug_logging(monkeypatch):
    from polytherm.cli import app

    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    monkeypatch.setattr(root, "level", root.level)

    result = CliRunner().invoke(app, ["-v", "eval", "1", "< 2"])
    assert result.exit_code == 0
    assert logging.getLogger().level == logging.DEBUG

    CliRunner().invoke(app, ["eval", "1", "< 2"])
    assert logging.getLogger().level == logging.WARNING
