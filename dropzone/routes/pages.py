from flask import Blueprint, current_app, redirect, send_from_directory

from dropzone.utils import get_access_gate, has_valid_credential

pages_bp = Blueprint('pages', __name__)


@pages_bp.route('/', methods=['GET'])
@pages_bp.route('/index.html', methods=['GET'])
def index():
    """Main upload page; sends visitors without a credential to the login page"""
    if not has_valid_credential():
        return redirect('/login.html')
    return send_from_directory(current_app.static_folder, 'index.html')


@pages_bp.route('/login.html', methods=['GET'])
def login_page():
    if not get_access_gate().challenge_required():
        return redirect('/')
    return send_from_directory(current_app.static_folder, 'login.html')
