import os
import time
from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from dropzone.utils import get_upload_manager, secret_required
from dropzone.utils.errors import SizeExceeded, UploadError

upload_bp = Blueprint('upload', __name__)

STREAM_CHUNK_SIZE = 1024 * 1024  # 1MB


@upload_bp.route('/init', methods=['POST'])
@secret_required
def init_upload():
    """Start a chunked upload session"""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'No data provided'}), 400

        session = get_upload_manager().init_upload(data.get('filename'), data.get('fileSize'))
        return jsonify({'uploadId': session.id}), 200

    except SizeExceeded as e:
        current_app.logger.warning(f"Rejected upload of {data.get('filename')}: {e.message}")
        return jsonify(e.to_dict()), e.status_code
    except UploadError as e:
        current_app.logger.error(f"Upload init failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code


@upload_bp.route('/chunk/<upload_id>', methods=['POST'])
@secret_required
def upload_chunk(upload_id):
    """Append the raw request body to an upload session"""
    try:
        chunk = request.get_data(cache=False)
        bytes_received, progress = get_upload_manager().apply_chunk(upload_id, chunk)
        return jsonify({'bytesReceived': bytes_received, 'progress': progress}), 200

    except UploadError as e:
        return jsonify(e.to_dict()), e.status_code


@upload_bp.route('/cancel/<upload_id>', methods=['POST'])
@secret_required
def cancel_upload(upload_id):
    """Cancel an upload session and discard the partial file"""
    get_upload_manager().cancel(upload_id)
    return jsonify({'message': 'Upload cancelled'}), 200


def _save_stream(file_storage, path, max_bytes):
    """Write an uploaded file to ``path``. Returns the size, or None when over ``max_bytes``."""
    written = 0
    try:
        with open(path, 'wb') as f:
            while True:
                chunk = file_storage.stream.read(STREAM_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    break
                f.write(chunk)
    except OSError:
        if os.path.exists(path):
            os.remove(path)
        raise

    if written > max_bytes:
        os.remove(path)
        return None
    return written


@upload_bp.route('', methods=['POST'])
@secret_required
def upload_files():
    """Upload one or more whole files in a single multipart request"""
    manager = get_upload_manager()
    resolver = manager.resolver
    saved = []

    try:
        resolver.check_writable()

        files = [f for f in request.files.getlist('files') if f and f.filename]
        if not files:
            current_app.logger.error("No files were uploaded")
            return jsonify({'message': 'No files uploaded'}), 400

        for f in files:
            original_name = f.filename
            base_name = secure_filename(original_name) or 'upload'
            saved_as = f"{int(time.time() * 1000)}-{base_name}"
            path = os.path.join(resolver.root, saved_as)
            index = 1
            while os.path.exists(path):
                saved_as = f"{int(time.time() * 1000)}-{index}-{base_name}"
                path = os.path.join(resolver.root, saved_as)
                index += 1
            current_app.logger.info(f"Processing file: {original_name} -> {saved_as}")

            size = _save_stream(f, path, manager.size_policy.max_bytes)
            if size is None:
                raise SizeExceeded(manager.size_policy.max_bytes)

            saved.append({
                'originalName': original_name,
                'savedAs': saved_as,
                'size': f"{size / (1024 * 1024):.2f} MB",
                'path': path,
            })

    except UploadError as e:
        current_app.logger.error(f"Upload failed: {e.message}")
        _discard(saved)
        return jsonify({'message': 'Upload failed', **e.to_dict()}), e.status_code
    except OSError as e:
        current_app.logger.error(f"Upload failed: {e}")
        _discard(saved)
        return jsonify({'message': 'Upload failed', 'error': str(e)}), 500

    verification_errors = [f"File not written: {d['savedAs']}" for d in saved if not os.path.exists(d['path'])]
    if verification_errors:
        current_app.logger.error("File verification failed")
        return jsonify({'message': 'Upload verification failed', 'errors': verification_errors}), 500

    current_app.logger.info(f"Successfully uploaded {len(saved)} files to {resolver.root}")
    for d in saved:
        current_app.logger.info(f"- {d['originalName']} ({d['size']}) as {d['savedAs']}")

    return jsonify({
        'message': 'Files uploaded successfully',
        'uploadDir': str(resolver.root),
        'files': saved,
    }), 200


def _discard(saved):
    for d in saved:
        try:
            os.remove(d['path'])
        except OSError as e:
            current_app.logger.error(f"Failed to remove {d['path']}: {e}")
