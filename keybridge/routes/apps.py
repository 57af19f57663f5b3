from __future__ import annotations

import json

from flask import Blueprint, jsonify, request


def create_apps_blueprint(
    *,
    config_repo,
    compile_permissions,
    find_negative_limits,
    validate_app_id,
    validate_positive_int,
    validate_url,
    validate_required_fields,
    sanitize_string,
    logger,
):
    """Create app and tier configuration routes with injected dependencies."""
    blueprint = Blueprint('apps', __name__)

    @blueprint.route('/api/apps', methods=['GET'])
    def list_apps():
        """List configured apps with their tier bindings."""
        try:
            return jsonify([config.to_dict() for config in config_repo.list_all()])
        except Exception as e:
            logger.error(f"Failed to list apps: {e}")
            return jsonify({'error': 'Failed to list apps'}), 500

    @blueprint.route('/api/apps/<app_id>', methods=['GET'])
    def get_app(app_id):
        config = config_repo.get(app_id)
        if not config:
            return jsonify({'error': 'App not found'}), 404
        return jsonify(config.to_dict())

    @blueprint.route('/api/apps/<app_id>', methods=['PUT'])
    def save_app(app_id):
        """Create or update an app's key service URL."""
        valid, error = validate_app_id(app_id)
        if not valid:
            return jsonify({'error': error}), 400

        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Expected a JSON object'}), 400
        url = sanitize_string(data.get('url', ''), max_length=2048)
        valid, error = validate_url(url)
        if not valid:
            return jsonify({'error': error}), 400

        try:
            config_repo.upsert_app(app_id, url.rstrip('/'))
            logger.info(f"App {app_id} configured at {url}")
            return jsonify(config_repo.get(app_id).to_dict())
        except Exception as e:
            logger.error(f"Failed to save app {app_id}: {e}")
            return jsonify({'error': 'Failed to save app'}), 500

    @blueprint.route('/api/apps/<app_id>', methods=['DELETE'])
    def delete_app(app_id):
        try:
            if not config_repo.delete_app(app_id):
                return jsonify({'error': 'App not found'}), 404
            logger.info(f"App {app_id} removed")
            return jsonify({'success': True})
        except Exception as e:
            logger.error(f"Failed to delete app {app_id}: {e}")
            return jsonify({'error': 'Failed to delete app'}), 500

    @blueprint.route('/api/apps/<app_id>/tiers/<tier_id>', methods=['PUT'])
    def save_tier(app_id, tier_id):
        """Bind a tier to an app with its permission document."""
        valid, error = validate_positive_int(tier_id, 'Tier ID')
        if not valid:
            return jsonify({'error': error}), 400
        tier_id = int(tier_id)

        if not config_repo.get(app_id):
            return jsonify({'error': 'App not found'}), 404

        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Expected a JSON object'}), 400
        valid, error = validate_required_fields(data, ['permissions'])
        if not valid:
            return jsonify({'error': error}), 400
        raw = data['permissions']
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                logger.error(f"Invalid permissions JSON for tier {tier_id} of {app_id}: {raw}")
                return jsonify({'error': 'Permissions must be valid JSON'}), 400
        if not isinstance(raw, dict):
            return jsonify({'error': 'Permissions must be an object with limits and flags'}), 400

        permissions = compile_permissions(raw)
        negative = find_negative_limits(permissions)
        if negative:
            return jsonify({'error': f"Limits must not be negative: {', '.join(negative)}"}), 400

        tier_name = sanitize_string(data.get('tier_name', ''), max_length=50) or None

        try:
            config_repo.set_tier(app_id, tier_id, permissions, tier_name=tier_name)
            logger.info(f"Tier {tier_id} bound to app {app_id}")
            return jsonify(config_repo.get(app_id).to_dict())
        except Exception as e:
            logger.error(f"Failed to save tier {tier_id} for app {app_id}: {e}")
            return jsonify({'error': 'Failed to save tier'}), 500

    @blueprint.route('/api/apps/<app_id>/tiers/<int:tier_id>', methods=['DELETE'])
    def delete_tier(app_id, tier_id: int):
        try:
            if not config_repo.remove_tier(app_id, tier_id):
                return jsonify({'error': 'Tier binding not found'}), 404
            logger.info(f"Tier {tier_id} unbound from app {app_id}")
            return jsonify({'success': True})
        except Exception as e:
            logger.error(f"Failed to delete tier {tier_id} for app {app_id}: {e}")
            return jsonify({'error': 'Failed to delete tier'}), 500

    return blueprint
