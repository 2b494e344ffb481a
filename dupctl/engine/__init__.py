from dupctl.config import bandwidth_limit_kbps, find_repository
from dupctl.engine.base import Engine, Snapshot
from dupctl.engine.duplicacy import DuplicacyEngine

__all__ = ["Engine", "Snapshot", "DuplicacyEngine", "create_engine"]


def create_engine(settings):
    """Create the engine adapter from settings.

    Settings keys:
        DUPLICACY: engine binary (default "duplicacy")
        REPOSITORY: repository root; found from cwd when unset
        BANDWIDTH_LIMIT: Mbit/s cap passed to the engine as KB/s
    """
    return DuplicacyEngine(
        binary=settings.get("DUPLICACY") or "duplicacy",
        repository=find_repository(settings),
        limit_rate=bandwidth_limit_kbps(settings),
    )
