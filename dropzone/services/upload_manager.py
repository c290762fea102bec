"""Chunked upload sessions.

An upload goes through ``init_upload`` -> ``apply_chunk``* and ends either
when the declared size has been received or on ``cancel``. Sessions live in
a table owned by the manager; a single lock guards inserts, lookups and
removals while byte writes happen under each session's own lock.
"""

import logging
import os
import threading
import time
from typing import Dict, List, Optional, Tuple

from dropzone.models.upload_session import UploadSession
from dropzone.services.size_policy import SizePolicy
from dropzone.services.storage import StorageResolver
from dropzone.utils.errors import InvalidUpload, SessionNotFound, StorageUnavailable, UploadIOError

logger = logging.getLogger(__name__)

MAX_UINT64 = 2 ** 64 - 1


def validate_size(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidUpload('fileSize must be an integer')
    if value < 0 or value > MAX_UINT64:
        raise InvalidUpload('fileSize is out of range')
    return value


class UploadManager:

    def __init__(self, resolver: StorageResolver, size_policy: SizePolicy):
        self.resolver = resolver
        self.size_policy = size_policy
        self._sessions: Dict[str, UploadSession] = {}
        self._lock = threading.Lock()

    def get(self, upload_id: str) -> Optional[UploadSession]:
        with self._lock:
            return self._sessions.get(upload_id)

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def init_upload(self, filename, file_size) -> UploadSession:
        file_size = validate_size(file_size)
        self.size_policy.admit(file_size)

        destination = self.resolver.resolve(filename)
        self.resolver.reserve(destination)
        try:
            sink = open(destination, 'wb')
        except OSError as e:
            self.resolver.release(destination)
            raise StorageUnavailable(f'Failed to open {destination}: {e}') from e

        session = UploadSession(filename, destination, file_size, sink)
        if file_size == 0:
            session.close_sink()
            self.resolver.release(destination)
            logger.info("Upload %s complete: %s (empty file)", session.id, destination)
            return session

        with self._lock:
            self._sessions[session.id] = session
        logger.info("Upload %s started: %s (%d bytes) -> %s", session.id, filename, file_size, destination)
        return session

    def apply_chunk(self, upload_id: str, data: bytes) -> Tuple[int, int]:
        """Append ``data`` to the session and return (bytes received, progress)."""
        session = self.get(upload_id)
        if session is None:
            raise SessionNotFound(upload_id)

        with session.lock:
            if session.closed:
                raise SessionNotFound(upload_id)
            try:
                session.sink.write(data)
            except OSError as e:
                logger.error("Write failed for upload %s: %s", upload_id, e)
                raise UploadIOError(f'Failed to write chunk: {e}') from e

            session.bytes_received += len(data)
            session.touch()
            bytes_received = session.bytes_received
            progress = session.progress()

            if session.complete:
                try:
                    session.close_sink()
                except OSError as e:
                    logger.error("Failed to finalize upload %s: %s", upload_id, e)
                    raise UploadIOError(f'Failed to finalize upload: {e}') from e
                finally:
                    self._retire(session)
                logger.info("Upload %s complete: %s (%d bytes)",
                            upload_id, session.destination_path, bytes_received)

        return bytes_received, progress

    def cancel(self, upload_id: str) -> bool:
        """Discard a session and its partial file. Unknown ids are ignored."""
        with self._lock:
            session = self._sessions.pop(upload_id, None)
        if session is None:
            return False

        with session.lock:
            if session.closed:
                # The final chunk completed the upload while we waited.
                return False
            try:
                session.close_sink()
            except OSError as e:
                logger.error("Failed to close upload %s: %s", upload_id, e)
            try:
                os.remove(session.destination_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error("Failed to remove partial file %s: %s", session.destination_path, e)
            self.resolver.release(session.destination_path)

        logger.info("Upload %s cancelled: %s", upload_id, session.declared_name)
        return True

    def reap_idle(self, max_idle_seconds: float) -> List[str]:
        """Cancel every session with no activity for ``max_idle_seconds``."""
        now = time.monotonic()
        with self._lock:
            idle = [uid for uid, s in self._sessions.items() if s.idle_for(now) >= max_idle_seconds]

        reaped = [uid for uid in idle if self.cancel(uid)]
        if reaped:
            logger.warning("Reaped %d idle upload(s): %s", len(reaped), ', '.join(reaped))
        return reaped

    def _retire(self, session: UploadSession):
        with self._lock:
            self._sessions.pop(session.id, None)
        self.resolver.release(session.destination_path)
