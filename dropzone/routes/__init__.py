# Routes package
from .auth import auth_bp
from .pages import pages_bp
from .upload import upload_bp
