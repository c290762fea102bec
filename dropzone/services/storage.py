"""Mapping of client-supplied filenames onto paths inside the upload root."""

import logging
import os
import threading
from pathlib import Path

from dropzone.utils.errors import DestinationConflict, InvalidUpload, StorageUnavailable

logger = logging.getLogger(__name__)


class StorageResolver:
    """Resolves declared filenames to destinations under ``root``.

    Also keeps the set of destinations currently held by live upload
    sessions, so two sessions never write the same file.
    """

    def __init__(self, root):
        self.root = Path(os.path.realpath(root))
        self._reserved = set()
        self._lock = threading.Lock()

    def ensure_root(self):
        """Create the upload root if needed and check it is writable."""
        try:
            if not self.root.exists():
                self.root.mkdir(parents=True, exist_ok=True)
                logger.info("Created upload directory: %s", self.root)
        except OSError as e:
            raise StorageUnavailable(f'Failed to create upload directory {self.root}: {e}') from e
        self.check_writable()
        logger.info("Upload directory is writable: %s", self.root)

    def check_writable(self):
        if not self.root.is_dir() or not os.access(self.root, os.W_OK):
            raise StorageUnavailable(f'Upload directory not writable: {self.root}')

    def list_contents(self):
        try:
            return sorted(os.listdir(self.root))
        except OSError as e:
            raise StorageUnavailable(f'Failed to list upload directory: {e}') from e

    def _segments(self, declared_name):
        if not isinstance(declared_name, str) or not declared_name.strip():
            raise InvalidUpload('Filename is required')
        if '\x00' in declared_name:
            raise InvalidUpload('Filename contains invalid characters')

        name = declared_name.replace('\\', '/')
        if name.startswith('/') or os.path.isabs(name) or (len(name) > 1 and name[0].isalpha() and name[1] == ':'):
            raise InvalidUpload(f'Absolute paths are not allowed: {declared_name}')

        segments = [s for s in name.split('/') if s not in ('', '.')]
        if any(s == '..' for s in segments):
            raise InvalidUpload(f'Parent directory traversal not allowed: {declared_name}')
        if not segments:
            raise InvalidUpload('Filename is required')
        return segments

    def resolve(self, declared_name) -> Path:
        """Return the absolute destination for ``declared_name``.

        Intermediate directories are created. Raises InvalidUpload when the
        name would land outside the root.
        """
        segments = self._segments(declared_name)
        candidate = os.path.realpath(os.path.join(self.root, *segments))
        if os.path.commonpath([candidate, str(self.root)]) != str(self.root) or candidate == str(self.root):
            raise InvalidUpload(f'Filename escapes the upload directory: {declared_name}')

        destination = Path(candidate)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f'Failed to create directory {destination.parent}: {e}') from e

        # mkdir may have followed a symlink planted between the check and now.
        if os.path.realpath(destination.parent) != str(destination.parent):
            raise InvalidUpload(f'Filename escapes the upload directory: {declared_name}')
        return destination

    def reserve(self, path):
        key = str(path)
        with self._lock:
            if key in self._reserved:
                raise DestinationConflict(f'Another upload is already writing {path.name}')
            self._reserved.add(key)

    def release(self, path):
        with self._lock:
            self._reserved.discard(str(path))

    def is_reserved(self, path) -> bool:
        with self._lock:
            return str(path) in self._reserved
