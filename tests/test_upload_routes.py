import io

from dropzone.routes import upload as upload_routes


def init(client, filename, size):
    return client.post('/upload/init', json={'filename': filename, 'fileSize': size})


def send_chunk(client, upload_id, data):
    return client.post(f'/upload/chunk/{upload_id}', data=data, content_type='application/octet-stream')


def test_chunked_upload_scenario(client, upload_dir):
    response = init(client, 'a.txt', 10)
    assert response.status_code == 200
    upload_id = response.get_json()['uploadId']

    response = send_chunk(client, upload_id, b'012345')
    assert response.status_code == 200
    assert response.get_json() == {'bytesReceived': 6, 'progress': 60}

    response = send_chunk(client, upload_id, b'6789')
    assert response.get_json() == {'bytesReceived': 10, 'progress': 100}
    assert (upload_dir / 'a.txt').read_bytes() == b'0123456789'

    response = send_chunk(client, upload_id, b'more')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Upload not found'}


def test_init_rejects_size_over_limit(client, upload_dir):
    response = init(client, 'huge.bin', 2_000_000_000_000)

    assert response.status_code == 413
    body = response.get_json()
    assert body['limit'] == 1024 * 1024 * 1024
    assert body['limitInMB'] == 1024
    assert 'error' in body
    assert list(upload_dir.iterdir()) == []


def test_init_requires_a_body(client):
    response = client.post('/upload/init', data='not json', content_type='text/plain')
    assert response.status_code == 400


def test_init_rejects_traversal(client, upload_dir):
    response = init(client, '../../etc/cron.d/evil', 4)

    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_init_rejects_bad_size(client):
    assert init(client, 'a.txt', '10').status_code == 400
    assert init(client, 'a.txt', -5).status_code == 400


def test_init_rejects_destination_in_use(client):
    assert init(client, 'busy.txt', 10).status_code == 200
    assert init(client, 'busy.txt', 10).status_code == 409


def test_zero_size_upload_is_complete_immediately(client, upload_dir):
    response = init(client, 'empty.txt', 0)

    assert response.status_code == 200
    assert (upload_dir / 'empty.txt').exists()
    assert send_chunk(client, response.get_json()['uploadId'], b'x').status_code == 404


def test_cancel_is_idempotent(client, app, upload_dir):
    upload_id = init(client, 'partial.txt', 10).get_json()['uploadId']
    send_chunk(client, upload_id, b'abc')

    for _ in range(2):
        response = client.post(f'/upload/cancel/{upload_id}')
        assert response.status_code == 200
        assert 'message' in response.get_json()

    assert not (upload_dir / 'partial.txt').exists()
    assert app.extensions['upload_manager'].active_count() == 0
    assert client.post('/upload/cancel/unknown').status_code == 200


def test_whole_file_upload(client, upload_dir):
    response = client.post('/upload', data={
        'files': [(io.BytesIO(b'hello'), 'hello.txt'), (io.BytesIO(b'world!'), 'world.txt')],
    }, content_type='multipart/form-data')

    assert response.status_code == 200
    body = response.get_json()
    assert body['message'] == 'Files uploaded successfully'
    assert len(body['files']) == 2

    first = body['files'][0]
    assert first['originalName'] == 'hello.txt'
    assert first['savedAs'].endswith('-hello.txt')
    assert first['size'] == '0.00 MB'
    assert (upload_dir / first['savedAs']).read_bytes() == b'hello'


def test_whole_file_upload_sanitizes_names(client, upload_dir):
    response = client.post('/upload', data={
        'files': [(io.BytesIO(b'x'), '../../escape.txt')],
    }, content_type='multipart/form-data')

    assert response.status_code == 200
    saved_as = response.get_json()['files'][0]['savedAs']
    assert '/' not in saved_as
    assert (upload_dir / saved_as).exists()


def test_whole_file_upload_without_files(client):
    response = client.post('/upload', data={}, content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json() == {'message': 'No files uploaded'}


def test_whole_file_upload_over_limit(client, app, upload_dir):
    app.extensions['upload_manager'].size_policy.max_bytes = 3

    response = client.post('/upload', data={
        'files': [(io.BytesIO(b'abcdef'), 'big.txt')],
    }, content_type='multipart/form-data')

    assert response.status_code == 413
    assert response.get_json()['limit'] == 3
    assert list(upload_dir.iterdir()) == []


class FailingFile:
    def __init__(self, f):
        self.f = f

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.f.close()

    def write(self, data):
        self.f.write(data[:1])
        raise OSError('No space left on device')


def test_whole_file_upload_write_failure_leaves_nothing(client, upload_dir, monkeypatch):
    monkeypatch.setattr(upload_routes, 'open', lambda path, mode: FailingFile(open(path, mode)), raising=False)

    response = client.post('/upload', data={
        'files': [(io.BytesIO(b'abcdef'), 'full.txt')],
    }, content_type='multipart/form-data')

    assert response.status_code == 500
    assert response.get_json()['message'] == 'Upload failed'
    assert list(upload_dir.iterdir()) == []


class FrozenClock:
    @staticmethod
    def time():
        return 1700000000.0


def test_whole_file_upload_same_name_same_millisecond(client, upload_dir, monkeypatch):
    monkeypatch.setattr(upload_routes, 'time', FrozenClock)

    response = client.post('/upload', data={
        'files': [(io.BytesIO(b'first'), 'dup.txt'), (io.BytesIO(b'second'), 'dup.txt')],
    }, content_type='multipart/form-data')

    assert response.status_code == 200
    names = [f['savedAs'] for f in response.get_json()['files']]
    assert len(set(names)) == 2
    assert sorted((upload_dir / n).read_bytes() for n in names) == [b'first', b'second']
