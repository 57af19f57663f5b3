"""Routes package."""
from .api_keys import create_api_keys_blueprint
from .apps import create_apps_blueprint
from .events import create_events_blueprint
from .health import create_health_blueprint

__all__ = [
    'create_api_keys_blueprint',
    'create_apps_blueprint',
    'create_events_blueprint',
    'create_health_blueprint',
]
