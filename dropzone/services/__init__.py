# Services package
from .access_gate import AccessGate, parse_secret
from .scheduler import init_scheduler
from .size_policy import SizePolicy
from .storage import StorageResolver
from .upload_manager import UploadManager
