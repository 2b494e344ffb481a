from pathlib import Path

import pytest

import dupctl.log
from dupctl.engine.base import Engine
from dupctl.errors import EngineFailure


class FakeEngine(Engine):
    """Records calls instead of running duplicacy."""

    def __init__(self, repository, snapshots=(), storages=("default",)):
        super().__init__(repository)
        self.snapshots = list(snapshots)
        self.storage_names = list(storages)
        self.output = "Downloaded etc/hosts (220)\nRestored 1 files\n"
        self.fail = set()
        self.calls = []
        self.marker_during_restore = None
        self.limit_rate = None

    def list_snapshots(self, storage_id="default"):
        self.calls.append(("list", storage_id))
        return list(self.snapshots)

    def storages(self):
        return list(self.storage_names)

    def restore(self, revision_id, storage_id, filters, cwd, callback=None):
        self.calls.append(("restore", revision_id, storage_id, list(filters), Path(cwd)))
        marker = Path(cwd) / ".duplicacy"
        if marker.is_file():
            self.marker_during_restore = marker.read_text().strip()
        return self._emit("restore", storage_id, callback)

    def check(self, storage_id, callback=None):
        self.calls.append(("check", storage_id))
        return self._emit("check", storage_id, callback)

    def backup(self, storage_id, callback=None):
        self.calls.append(("backup", storage_id))
        return self._emit("backup", storage_id, callback)

    def prune(self, storage_id, keep, callback=None):
        self.calls.append(("prune", storage_id, list(keep)))
        return self._emit("prune", storage_id, callback)

    def _emit(self, operation, storage_id, callback):
        for line in self.output.splitlines(keepends=True):
            if callback:
                callback(line)
        if operation in self.fail or storage_id in self.fail:
            raise EngineFailure(f"duplicacy {operation}", 100, self.output)
        return self.output


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the audit log and settings file out of the real home directory."""
    monkeypatch.setattr(dupctl.log, "LOGS_FILE", tmp_path / "logs.jsonl")
    monkeypatch.setenv("DUPCTL_SETTINGS", str(tmp_path / "settings"))


@pytest.fixture
def repository(tmp_path):
    repo = tmp_path / "repo"
    (repo / ".duplicacy").mkdir(parents=True)
    return repo


@pytest.fixture
def engine(repository):
    return FakeEngine(repository)
