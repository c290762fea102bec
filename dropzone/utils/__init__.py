# Utils package
from .decorators import get_access_gate, get_upload_manager, has_valid_credential, secret_required
