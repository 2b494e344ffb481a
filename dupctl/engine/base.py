from abc import ABC, abstractmethod
from collections import namedtuple
from pathlib import Path

from dupctl.config import PREFERENCES_DIR

# timestamp is a fixed-width "YYYY-MM-DDTHH:MM" string (see dupctl.resolver)
Snapshot = namedtuple("Snapshot", ["revision_id", "timestamp"])


class Engine(ABC):
    """Base interface for backup engine adapters.

    Implementations: DuplicacyEngine. Every call re-queries the engine;
    nothing is cached between calls.
    """

    def __init__(self, repository="."):
        self.repository = Path(repository)

    @property
    def preferences_dir(self):
        return self.repository / PREFERENCES_DIR

    @abstractmethod
    def list_snapshots(self, storage_id="default"):
        """Return every Snapshot of the storage, in the engine's listing order.

        Raises StorageUnavailable if the storage can't be enumerated.
        """
        pass

    @abstractmethod
    def storages(self):
        """Names of every configured storage target."""
        pass

    @abstractmethod
    def restore(self, revision_id, storage_id, filters, cwd, callback=None):
        """Restore a revision into cwd. Returns the full output.

        Output is streamed line-by-line through callback. Raises EngineFailure
        on a non-zero exit.
        """
        pass

    @abstractmethod
    def check(self, storage_id, callback=None):
        """Run an integrity check (fossils, resurrection, tabular stats)."""
        pass

    @abstractmethod
    def backup(self, storage_id, callback=None):
        pass

    @abstractmethod
    def prune(self, storage_id, keep, callback=None):
        """Apply the retention policies in keep, collecting fossils."""
        pass
