from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, set_access_cookies, unset_jwt_cookies

from dropzone.utils import get_access_gate

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/secret-required', methods=['GET'])
def secret_required_status():
    """Tell the client whether to prompt for a secret, and how many digits it has"""
    gate = get_access_gate()
    return jsonify({
        'required': gate.challenge_required(),
        'length': gate.secret_length,
    }), 200


@auth_bp.route('/verify-secret', methods=['POST'])
def verify_secret():
    """Check the shared secret and issue a credential cookie on success"""
    gate = get_access_gate()
    data = request.get_json(silent=True) or {}
    secret = data.get('secret') if isinstance(data, dict) else None

    if not gate.challenge_required():
        return jsonify({'success': True}), 200

    if not isinstance(secret, str) or not gate.verify(secret):
        current_app.logger.warning(f"Failed secret verification from {request.remote_addr}")
        return jsonify({'success': False, 'error': 'Invalid secret'}), 401

    response = jsonify({'success': True})
    set_access_cookies(response, create_access_token(identity='uploader'))
    return response, 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Drop the credential cookie"""
    response = jsonify({'success': True})
    unset_jwt_cookies(response)
    return response, 200
