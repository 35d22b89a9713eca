"""Scoped ownership of the implementation file the suite imports.

The suite-under-test imports its subject from a fixed path, so testing
several implementations against one unmodified suite means swapping the
bytes at that path. ImplementationSlot snapshots the original on entry
and restores it on exit, including when the batch raises. A sidecar
copy on disk lets the next run repair the slot after a hard crash.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType

log = logging.getLogger(__name__)

BACKUP_SUFFIX = ".splitcheck-backup"
ABSENT_SUFFIX = ".splitcheck-absent"


class ImplementationSlot:
    """Context manager that owns the slot file for one variant batch.

    Usage:
        with ImplementationSlot(path) as slot:
            slot.install(variant_source)
            ...  # run the suite
        # original bytes are back in place here

    Args:
        path: The file the suite-under-test imports.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.backup_path = path.with_name(path.name + BACKUP_SUFFIX)
        self.absent_marker = path.with_name(path.name + ABSENT_SUFFIX)
        self.installed: Path | None = None
        self._original: bytes | None = None
        self._held = False

    def __enter__(self) -> ImplementationSlot:
        self.recover()
        self._original = self.path.read_bytes() if self.path.exists() else None
        if self._original is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.absent_marker.touch()
        else:
            self.backup_path.write_bytes(self._original)
        self._held = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.restore()

    def install(self, source: Path) -> None:
        """Replace the slot's bytes with the contents of source."""
        if not self._held:
            raise RuntimeError("ImplementationSlot.install() called outside 'with' block")
        self.path.write_bytes(source.read_bytes())
        self.installed = source
        log.debug("Installed %s into %s", source, self.path)

    def restore(self) -> None:
        """Put the original contents back and drop the sidecar files."""
        if not self._held:
            return
        if self._original is None:
            self.path.unlink(missing_ok=True)
        else:
            self.path.write_bytes(self._original)
        self.backup_path.unlink(missing_ok=True)
        self.absent_marker.unlink(missing_ok=True)
        self.installed = None
        self._held = False
        log.debug("Restored original contents of %s", self.path)

    def matches_original(self) -> bool:
        """True when the slot holds exactly what it held before entry."""
        if self._original is None:
            return not self.path.exists()
        return self.path.exists() and self.path.read_bytes() == self._original

    def recover(self) -> bool:
        """Repair the slot from sidecar files left by an interrupted run.

        Returns:
            True if a leftover sidecar was found and the slot repaired.
        """
        if self.absent_marker.exists():
            log.warning(
                "Leftover %s from an interrupted run; removing stale %s",
                self.absent_marker.name,
                self.path,
            )
            self.path.unlink(missing_ok=True)
            self.absent_marker.unlink()
        elif self.backup_path.exists():
            log.warning(
                "Leftover %s from an interrupted run; restoring %s",
                self.backup_path.name,
                self.path,
            )
            self.path.write_bytes(self.backup_path.read_bytes())
            self.backup_path.unlink()
        else:
            return False
        return True
