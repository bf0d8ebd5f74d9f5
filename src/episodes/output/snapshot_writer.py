"""
Snapshot Writer for mirrored episodes

Writes EpisodeData to a JSON file (by default /dev/shm/episodes.json) so
other local processes can read the latest mirrored tables without
speaking the line protocol.

The file is updated atomically (write to temp, rename) to prevent partial
reads.

Usage:
    writer = SnapshotWriter('/dev/shm/episodes.json')
    writer.write(mirror.snapshot())
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..interfaces.episode_data import EpisodeData

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """
    Writes EpisodeData to a snapshot file.

    JSON-formatted for easy debugging and consumption. Updates are atomic
    (write to temp file, then rename).
    """

    DEFAULT_PATH = "/dev/shm/episodes.json"

    def __init__(self, path: Optional[str] = None):
        """
        Initialize snapshot writer.

        Args:
            path: Snapshot file path (default: /dev/shm/episodes.json)
        """
        self.path = Path(path or self.DEFAULT_PATH)
        self.write_count = 0

        self.path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"SnapshotWriter initialized: {self.path}")

    def write(self, data: EpisodeData) -> bool:
        """
        Write a snapshot.

        Args:
            data: Tables to write

        Returns:
            True if successful, False on error
        """
        try:
            json_data = data.to_json()

            # Temp file must be in the same directory for an atomic rename
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix='.episodes_',
                suffix='.tmp'
            )

            try:
                with os.fdopen(fd, 'w') as f:
                    f.write(json_data)

                os.rename(temp_path, self.path)
                self.write_count += 1
                logger.debug(
                    f"Snapshot #{self.write_count}: "
                    f"{len(data.marks)} marks, {len(data.measures)} episodes"
                )
                return True

            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise

        except Exception as e:
            logger.error(f"Failed to write snapshot: {e}")
            return False

    def clear(self):
        """Remove the snapshot file."""
        try:
            if self.path.exists():
                self.path.unlink()
                logger.info(f"Cleared snapshot: {self.path}")
        except OSError as e:
            logger.warning(f"Failed to clear snapshot: {e}")


class SnapshotReader:
    """
    Reads EpisodeData snapshots written by SnapshotWriter.

    Usage:
        reader = SnapshotReader('/dev/shm/episodes.json')
        duration = reader.get_episode_duration('pageloadtime')
    """

    DEFAULT_PATH = SnapshotWriter.DEFAULT_PATH

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or self.DEFAULT_PATH)
        self._read_count = 0

    def read(self) -> Optional[EpisodeData]:
        """
        Read the current snapshot.

        Returns:
            EpisodeData or None if unavailable or invalid
        """
        try:
            if not self.path.exists():
                return None

            with open(self.path, 'r') as f:
                json_data = f.read()

            data = EpisodeData.from_json(json_data)
            self._read_count += 1
            return data

        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in snapshot: {e}")
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read snapshot: {e}")
            return None

    def get_episode_duration(self, episode_name: str) -> Optional[int]:
        """Duration of one episode in ms, or None if unavailable."""
        data = self.read()
        if data is None:
            return None
        return data.measures.get(episode_name)

    def get_mark(self, name: str) -> Optional[int]:
        data = self.read()
        if data is None:
            return None
        return data.marks.get(name)

    @property
    def available(self) -> bool:
        """Check if the snapshot file exists."""
        return self.path.exists()
