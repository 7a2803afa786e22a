"""Temporary storage management."""

import tempfile
import shutil
import threading
from pathlib import Path
from typing import Dict, Optional

from tubevault.shared.logging import get_logger

logger = get_logger(__name__)


class TempStorage:
    """Manages per-job download workspaces. Implements ITempStorage protocol."""

    def __init__(self, base_dir: Optional[Path] = None, prefix: str = "ytdl-"):
        """
        Initialize temp storage manager.

        Args:
            base_dir: Base directory for workspaces (defaults to system temp)
            prefix: Directory name prefix
        """
        self.base_dir = base_dir or Path(tempfile.gettempdir())
        self.prefix = prefix
        self._logger = get_logger(__name__)
        self._workspaces: Dict[str, Path] = {}
        self._lock = threading.Lock()

    def create_workspace(self, job_id: str) -> Path:
        """
        Create a fresh, uniquely named workspace for a job.

        Args:
            job_id: Unique job identifier

        Returns:
            Path to created workspace
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=f"{self.prefix}{job_id[:8]}-", dir=self.base_dir))

        with self._lock:
            self._workspaces[job_id] = workspace
        self._logger.info(f"Created workspace: {workspace}")

        return workspace

    def cleanup(self, workspace: Path) -> None:
        """
        Recursively remove a workspace. Errors are logged, never raised.

        Args:
            workspace: Path to workspace
        """
        with self._lock:
            for job_id, ws in list(self._workspaces.items()):
                if ws == workspace:
                    del self._workspaces[job_id]

        if not workspace.exists():
            return

        try:
            shutil.rmtree(workspace)
            self._logger.info(f"Cleaned up workspace: {workspace}")
        except OSError as e:
            self._logger.warning(f"Failed to clean up temp directory {workspace}: {e}")

    def cleanup_all(self) -> None:
        """Clean up all tracked workspaces."""
        with self._lock:
            workspaces = list(self._workspaces.values())
        for workspace in workspaces:
            self.cleanup(workspace)
