from dropzone.utils.errors import SizeExceeded

MB = 1024 * 1024


class SizePolicy:
    """Admission check of a declared upload size against the configured ceiling."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    @classmethod
    def from_megabytes(cls, max_mb: int) -> 'SizePolicy':
        return cls(max_mb * MB)

    @property
    def limit_in_mb(self) -> int:
        return self.max_bytes // MB

    def admit(self, declared_size: int) -> None:
        if declared_size > self.max_bytes:
            raise SizeExceeded(self.max_bytes)
