# Models package
from .upload_session import UploadSession
