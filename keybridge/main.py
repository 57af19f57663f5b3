"""
keybridge - membership tier to API key synchronization
Main Flask application
"""
import logging
import os

from keybridge import create_app
from keybridge.config import Config
from keybridge.db import ensure_data_dir, init_db

# Configure logging
log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=getattr(logging, log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = create_app(Config)


if __name__ == '__main__':
    ensure_data_dir()
    init_db()
    app.run(host='0.0.0.0', port=Config.PORT, debug=False)
