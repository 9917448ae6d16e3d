"""Browser automation collaborators for the parking monitor."""

from .snapshot_source import PlaywrightSnapshotSource

__all__ = ["PlaywrightSnapshotSource"]
