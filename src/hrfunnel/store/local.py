"""Local-directory object storage for resumes."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import structlog

from ..errors import PersistenceError


class LocalResumeStorage:
    """Store resume blobs as files under a root directory.

    Object paths are POSIX-style and relative (``<job_id>/<ms>-<filename>``).
    Existing objects are never overwritten.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)
        self._logger = structlog.get_logger(__name__)

    @property
    def root(self) -> Path:
        return self._root

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("xb") as handle:
                handle.write(content)
        except FileExistsError as exc:
            raise PersistenceError(f"Object already exists: {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Upload failed for {path}: {exc}") from exc
        self._logger.info(
            "storage.uploaded", path=path, content_type=content_type, size=len(content)
        )
        return path

    def list_paths(self) -> list[str]:
        if not self._root.exists():
            return []
        return sorted(
            item.relative_to(self._root).as_posix()
            for item in self._root.rglob("*")
            if item.is_file()
        )

    def delete(self, path: str) -> None:
        try:
            self._resolve(path).unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Cannot delete {path}: {exc}") from exc

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise PersistenceError(f"Invalid object path: {path!r}")
        return self._root.joinpath(*relative.parts)
