"""Provision bundled resources (models, samples) into writable storage."""

import logging
import shutil
from pathlib import Path

from whisperdesk.core.exceptions import AssetProvisioningError

logger = logging.getLogger(__name__)


class AssetStore:
    """Read-only view of the bundled asset directory.

    Args:
        root: Directory containing bundled subdirectories such as
            ``models/`` and ``samples/``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path(self, dir_name: str, name: str = "") -> Path:
        return self.root / dir_name / name if name else self.root / dir_name

    def list_bundled(self, dir_name: str) -> list[str]:
        """Return entry names under ``dir_name``, sorted; empty if it is missing."""
        directory = self.root / dir_name
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir() if not entry.name.startswith("."))

    def copy(self, dir_name: str, name: str, dest_dir: str | Path) -> Path:
        """Copy one bundled file into ``dest_dir``, creating it if absent.

        Raises:
            AssetProvisioningError: If the source is missing or the copy fails.
        """
        source = self.root / dir_name / name
        dest = Path(dest_dir)
        try:
            dest.mkdir(parents=True, exist_ok=True)
            if source.is_dir():
                shutil.copytree(source, dest / name, dirs_exist_ok=True)
            else:
                shutil.copyfile(source, dest / name)
        except OSError as exc:
            raise AssetProvisioningError(f"Failed to copy {dir_name}/{name}: {exc}") from exc
        return dest / name

    def copy_all(self, dir_name: str, dest_dir: str | Path) -> list[Path]:
        """Copy every bundled entry of ``dir_name`` into ``dest_dir``."""
        Path(dest_dir).mkdir(parents=True, exist_ok=True)
        copied = [self.copy(dir_name, name, dest_dir) for name in self.list_bundled(dir_name)]
        logger.info("Copied %d bundled %s into %s", len(copied), dir_name, dest_dir)
        return copied
