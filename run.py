import os
import sys

from dropzone import create_app
from dropzone.utils.errors import StorageUnavailable


def config_name():
    """Config used when launched directly; debug mode must be asked for explicitly"""
    return os.getenv('FLASK_CONFIG', 'production')


def main():
    try:
        app = create_app(config_name())
    except StorageUnavailable:
        # Nothing can be stored without a writable upload directory
        sys.exit(1)
    app.run(host='0.0.0.0', port=app.config['PORT'], threaded=True, use_reloader=False)


if __name__ == '__main__':
    main()
