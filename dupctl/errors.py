class DupctlError(Exception):
    """Base class for every error dupctl reports to the user."""


class InvalidInput(DupctlError):
    """Bad timestamp, missing paths, non-empty destination, ..."""


class ConfigurationError(InvalidInput):
    """The settings file holds a value we can't use."""


class StorageUnavailable(DupctlError):
    """The engine could not enumerate or read a storage target."""


class NoSnapshotAvailable(DupctlError):
    """No snapshot was taken at or before the requested time."""

    def __init__(self, desired_time, storage_id):
        super().__init__(
            f"No snapshot in storage {storage_id!r} at or before {desired_time}"
        )
        self.desired_time = desired_time
        self.storage_id = storage_id


class EngineFailure(DupctlError):
    """The engine ran but exited non-zero. Output is kept for the log."""

    def __init__(self, command, returncode, output=""):
        super().__init__(f"{command} failed with exit code {returncode}")
        self.command = command
        self.returncode = returncode
        self.output = output
