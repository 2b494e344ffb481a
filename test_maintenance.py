import io

import pytest
from rich.console import Console

from dupctl.check import run_check
from dupctl.config import DEFAULT_SETTINGS
from dupctl.errors import EngineFailure
from dupctl.log import read_logs
from dupctl.maintenance import run_backup, run_maintenance


def _console():
    return Console(file=io.StringIO(), width=120)


def test_check_every_storage(engine):
    engine.storage_names = ["default", "offsite"]
    console = _console()

    results = run_check(engine, console)

    assert results == {"default": "ok", "offsite": "ok"}
    assert engine.calls == [("check", "default"), ("check", "offsite")]
    banner = console.file.getvalue()
    assert "Checking storage default" in banner
    assert "Checking storage offsite" in banner


def test_check_continues_after_failure(engine):
    engine.storage_names = ["default", "offsite"]
    engine.fail.add("default")

    results = run_check(engine, _console())

    assert results == {"default": "failed", "offsite": "ok"}
    assert [e["result"] for e in read_logs()] == ["failed", "ok"]


def test_backup_logs_result(engine):
    lines = []
    run_backup(engine, "default", echo=lines.append)
    assert engine.calls == [("backup", "default")]
    assert lines
    assert read_logs()[-1]["result"] == "ok"


def test_backup_failure_propagates(engine):
    engine.fail.add("backup")
    with pytest.raises(EngineFailure):
        run_backup(engine, "default")
    assert read_logs()[-1]["result"] == "failed"


def test_maintenance_prunes_with_keep_policies(engine):
    settings = {**DEFAULT_SETTINGS, "KEEP": "0:360 7:30"}
    assert run_maintenance(engine, settings, "default") is True
    assert engine.calls == [("prune", "default", ["0:360", "7:30"])]


def test_maintenance_disabled(engine):
    settings = {**DEFAULT_SETTINGS, "DISABLE_MAINTENANCE": "1"}
    assert run_maintenance(engine, settings, "default") is False
    assert engine.calls == []
    assert read_logs()[-1]["result"] == "disabled"
