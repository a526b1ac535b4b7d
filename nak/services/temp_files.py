"""Registry of temporary files removed by the global cleanup hook."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import List

from nak.core.lib_logger import get_logger

logger = get_logger(__name__)


class TempFileRegistry:
    """Creates temp files and directories and remembers them for cleanup."""

    def __init__(self, prefix: str = "nak"):
        self.prefix = prefix
        self._paths: List[Path] = []

    def create_file(self, suffix: str = "") -> Path:
        """Create a private (0600) temp file."""
        fd, name = tempfile.mkstemp(prefix=f"{self.prefix}.", suffix=suffix)
        os.close(fd)
        path = Path(name)
        path.chmod(0o600)
        self._paths.append(path)
        return path

    def create_dir(self) -> Path:
        """Create a temp directory."""
        path = Path(tempfile.mkdtemp(prefix=f"{self.prefix}."))
        self._paths.append(path)
        return path

    def track(self, path: Path) -> None:
        """Register an externally created path for cleanup."""
        self._paths.append(Path(path))

    @property
    def paths(self) -> List[Path]:
        return list(self._paths)

    def cleanup(self) -> int:
        """Remove every registered path. Returns the number removed."""
        if self._paths:
            logger.info(f"Removing {len(self._paths)} temporary files")

        removed = 0
        for path in self._paths:
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                elif path.exists():
                    path.unlink()
                else:
                    continue
                removed += 1
                logger.info(f"Removed temporary file: {path}")
            except OSError as e:
                logger.warning(f"Failed to remove temporary file {path}: {e}")
        self._paths.clear()
        return removed
