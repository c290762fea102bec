from functools import wraps
from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from dropzone.utils.errors import Unauthorized

SECRET_HEADER = 'X-Upload-Secret'


def get_access_gate():
    return current_app.extensions['access_gate']


def get_upload_manager():
    return current_app.extensions['upload_manager']


def has_valid_credential():
    """
    Check whether the current request carries a credential accepted by the
    access gate: either the secret itself in the X-Upload-Secret header, or
    a token issued by /api/verify-secret (cookie or Authorization header).
    """
    gate = get_access_gate()
    if not gate.challenge_required():
        return True

    header_secret = request.headers.get(SECRET_HEADER)
    if header_secret is not None and gate.verify(header_secret):
        return True

    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError):
        # Expired or tampered tokens count as no credential
        return False
    return get_jwt_identity() is not None


def secret_required(fn):
    """
    Decorator to require the shared secret on upload-mutating endpoints.
    A no-op when no secret is configured.

    Usage:
        @upload_bp.route('/init', methods=['POST'])
        @secret_required
        def init_upload():
            ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not has_valid_credential():
            current_app.logger.warning(f"Unauthorized request to {request.path} from {request.remote_addr}")
            error = Unauthorized()
            return jsonify(error.to_dict()), error.status_code
        return fn(*args, **kwargs)

    return wrapper
