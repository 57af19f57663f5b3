"""
WSGI entry point for keybridge
Use this with production WSGI servers like Gunicorn or uWSGI
"""
import sys

from keybridge.config import Config
from keybridge.db import ensure_data_dir, init_db
from keybridge.main import app

# Initialize database on startup
if __name__ != '__main__':
    # Only initialize when running under WSGI server, not when imported
    try:
        ensure_data_dir()
        init_db()
    except Exception as e:
        print(f"Error during initialization: {e}", file=sys.stderr)
        raise

# WSGI application
application = app

if __name__ == '__main__':
    # For development/testing only
    # In production, use: gunicorn -c gunicorn.conf.py wsgi:application
    ensure_data_dir()
    init_db()
    app.run(host='0.0.0.0', port=Config.PORT, debug=False)
