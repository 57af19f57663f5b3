from __future__ import annotations

import hmac

from flask import Blueprint, jsonify, request


def create_events_blueprint(
    *,
    reconciliation_service,
    member_repo,
    limiter,
    event_token,
    validate_level_id,
    validate_positive_int,
    validate_email,
    validate_required_fields,
    sanitize_string,
    logger,
    rate_limit: str = '60 per minute',
):
    """Create the membership-change hook with injected dependencies."""
    blueprint = Blueprint('events', __name__)

    @blueprint.route('/hooks/membership-change', methods=['POST'])
    @limiter.limit(rate_limit)
    def membership_change():
        """Reconcile remote keys after a member's level changed."""
        if event_token:
            supplied = request.headers.get('X-Event-Token', '')
            if not hmac.compare_digest(supplied.encode(), event_token.encode()):
                return jsonify({'error': 'Invalid event token'}), 401

        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Expected a JSON object'}), 400
        valid, error = validate_required_fields(data, ['level_id', 'user_id'])
        if not valid:
            return jsonify({'error': error}), 400
        level_id = data.get('level_id')
        user_id = data.get('user_id')

        valid, error = validate_level_id(level_id)
        if not valid:
            return jsonify({'error': error}), 400
        valid, error = validate_positive_int(user_id, 'User ID')
        if not valid:
            return jsonify({'error': error}), 400
        level_id = int(level_id)
        user_id = int(user_id)

        user_email = sanitize_string(data.get('user_email', ''), max_length=254)
        if user_email:
            valid, error = validate_email(user_email)
            if not valid:
                return jsonify({'error': error}), 400
            try:
                member_repo.upsert(user_id, user_email)
            except Exception as e:
                logger.error(f"Failed to store e-mail for user {user_id}: {e}")

        outcomes = reconciliation_service.handle_level_change(level_id, user_id)
        logger.info(
            f"Membership change level={level_id} user={user_id}: "
            f"{sum(1 for o in outcomes if o.ok)}/{len(outcomes)} apps synced"
        )
        return jsonify({
            'level_id': level_id,
            'user_id': user_id,
            'results': [outcome.to_dict() for outcome in outcomes],
        })

    return blueprint
