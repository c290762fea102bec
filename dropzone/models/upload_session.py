import threading
import time
import uuid


class UploadSession:
    """One in-flight chunked file transfer."""

    def __init__(self, declared_name, destination_path, declared_size, sink):
        self.id = uuid.uuid4().hex
        self.declared_name = declared_name
        self.destination_path = destination_path
        self.declared_size = declared_size
        self.bytes_received = 0
        self.sink = sink
        self.created_at = time.monotonic()
        self.last_activity = self.created_at
        self.lock = threading.Lock()
        self.closed = False

    @property
    def complete(self):
        return self.bytes_received >= self.declared_size

    def progress(self):
        """Percentage received, rounded half up and capped at 100."""
        if self.declared_size == 0:
            return 100
        percent = (200 * self.bytes_received + self.declared_size) // (2 * self.declared_size)
        return min(percent, 100)

    def touch(self):
        self.last_activity = time.monotonic()

    def idle_for(self, now=None):
        return (now if now is not None else time.monotonic()) - self.last_activity

    def close_sink(self):
        if self.closed:
            return
        self.closed = True
        try:
            self.sink.flush()
        finally:
            self.sink.close()

    def to_dict(self):
        return {
            'uploadId': self.id,
            'filename': self.declared_name,
            'fileSize': self.declared_size,
            'bytesReceived': self.bytes_received,
            'progress': self.progress(),
        }
