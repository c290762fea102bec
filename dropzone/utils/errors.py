"""Error kinds raised by the upload services.

Each error knows the HTTP status it maps to and how to render itself as a
JSON payload, so routes can answer ``jsonify(e.to_dict()), e.status_code``.
"""


class UploadError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class Unauthorized(UploadError):
    status_code = 401

    def __init__(self, message='Unauthorized'):
        super().__init__(message)


class InvalidUpload(UploadError):
    status_code = 400


class SizeExceeded(UploadError):
    status_code = 413

    def __init__(self, limit):
        self.limit = limit
        self.limit_in_mb = limit // (1024 * 1024)
        super().__init__(f'File too large. Maximum allowed size is {self.limit_in_mb} MB')

    def to_dict(self):
        return {'error': self.message, 'limit': self.limit, 'limitInMB': self.limit_in_mb}


class DestinationConflict(UploadError):
    status_code = 409


class SessionNotFound(UploadError):
    status_code = 404

    def __init__(self, upload_id):
        self.upload_id = upload_id
        super().__init__('Upload not found')


class StorageUnavailable(UploadError):
    status_code = 500


class UploadIOError(UploadError):
    status_code = 500
