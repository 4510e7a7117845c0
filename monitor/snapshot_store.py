"""
Snapshot persistence for the change monitor.

The snapshot is stored as pretty-printed JSON so operators can inspect and
diff it by hand. Each persist fully replaces the previous file.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Union

import structlog

from monitor.exceptions import SnapshotError
from monitor.models import Snapshot


class SnapshotStore:
    """Loads and persists the snapshot of the previous run."""

    def __init__(self, data_path: Union[str, Path], logger=None):
        """
        Initialize snapshot store.

        Args:
            data_path: Location of the snapshot file
            logger: Optional logger, defaults to the module logger
        """
        self.data_path = Path(data_path)
        if logger is None:
            logger = structlog.get_logger(__name__).bind(component="snapshot_store")
        self.logger = logger

    async def load(self) -> Snapshot:
        """
        Load the snapshot persisted by the previous run.

        Returns:
            The stored snapshot, or an empty list on the first run

        Raises:
            SnapshotError: If the file exists but cannot be read or parsed
        """
        return await asyncio.to_thread(self._read)

    async def persist(self, snapshot: Snapshot) -> None:
        """
        Persist a snapshot, replacing any previous content.

        Raises:
            SnapshotError: If the snapshot cannot be serialized or written
        """
        await asyncio.to_thread(self._write, snapshot)
        self.logger.debug(
            "Snapshot persisted",
            data_path=str(self.data_path),
            records=len(snapshot)
        )

    def _read(self) -> Snapshot:
        try:
            content = self.data_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.logger.info(
                "Could not find historic data. File will be created on next run.",
                data_path=str(self.data_path)
            )
            return []
        except UnicodeDecodeError as e:
            raise SnapshotError(f"Snapshot {self.data_path} is corrupt: {e}") from e
        except OSError as e:
            raise SnapshotError(f"Failed to read snapshot {self.data_path}: {e}") from e

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Snapshot {self.data_path} is corrupt: {e}") from e

    def _write(self, snapshot: Snapshot) -> None:
        try:
            content = json.dumps(snapshot, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Snapshot is not serializable: {e}") from e

        # Write next to the target so the replace stays on one filesystem
        try:
            self.data_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.data_path.parent,
                prefix=f".{self.data_path.name}.",
                suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, self.data_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SnapshotError(f"Failed to write snapshot {self.data_path}: {e}") from e
