from __future__ import annotations

from flask import Blueprint, jsonify


def create_api_keys_blueprint(*, key_repo, config_repo, logger):
    """Create read-only key listing routes with injected dependencies."""
    blueprint = Blueprint('api_keys', __name__)

    @blueprint.route('/api/users/<int:user_id>/keys', methods=['GET'])
    def list_user_keys(user_id: int):
        """List a member's active keys (app, tier, key id)."""
        try:
            keys = key_repo.list_active_for_user(user_id)
            return jsonify([{
                'app_id': k.app_id,
                'tier': k.tier_name,
                'key_id': k.key_id,
            } for k in keys])
        except Exception as e:
            logger.error(f"Failed to list keys for user {user_id}: {e}")
            return jsonify({'error': 'Failed to list keys'}), 500

    @blueprint.route('/api/keys/<key_id>', methods=['GET'])
    def get_key(key_id):
        record = key_repo.get_by_key_id(key_id)
        if not record:
            return jsonify({'error': 'Key not found'}), 404
        return jsonify(record.to_dict())

    @blueprint.route('/api/keys', methods=['GET'])
    def list_active_keys():
        """Overview of every active key and every configured app."""
        try:
            return jsonify({
                'keys': [k.to_dict() for k in key_repo.list_active()],
                'apps': [config.to_dict() for config in config_repo.list_all()],
            })
        except Exception as e:
            logger.error(f"Failed to list active keys: {e}")
            return jsonify({'error': 'Failed to list keys'}), 500

    return blueprint
