from __future__ import annotations

from typing import Callable

from flask import Blueprint, jsonify


def create_health_blueprint(db_factory: Callable[[], object], version: str, mail_configured: Callable[[], bool]):
    """Create health and version routes with injected dependencies."""
    blueprint = Blueprint('health', __name__)

    @blueprint.route('/health')
    def health_check():
        """Health check endpoint for container orchestration and monitoring."""
        health = {
            'status': 'healthy',
            'version': version,
            'checks': {},
        }

        # Check database connectivity
        try:
            conn = db_factory()
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM apps')
            app_count = cursor.fetchone()[0]
            conn.close()
            health['checks']['database'] = {'status': 'ok', 'apps_configured': app_count}
        except Exception as e:
            health['status'] = 'unhealthy'
            health['checks']['database'] = {'status': 'error', 'message': str(e)}

        # Key delivery mail is optional but worth surfacing
        if mail_configured():
            health['checks']['mail'] = {'status': 'ok'}
        else:
            health['status'] = 'degraded' if health['status'] == 'healthy' else health['status']
            health['checks']['mail'] = {'status': 'warning', 'message': 'SMTP not configured'}

        status_code = 503 if health['status'] == 'unhealthy' else 200
        return jsonify(health), status_code

    @blueprint.route('/api/version')
    def get_version():
        """Get application version and build info."""
        import sys

        return jsonify({
            'version': version,
            'python_version': sys.version.split()[0],
            'api_version': 'v1',
        })

    return blueprint
