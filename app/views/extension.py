"""Endpoints called by the browser extension."""
from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from app.services.ingest_service import (
    IngestService, TransactionConflictError, ValidationError,
)

logger = logging.getLogger(__name__)

extension_bp = Blueprint('extension', __name__, url_prefix='/api')

CORS_ALLOW_METHODS = 'GET, POST, OPTIONS'
CORS_ALLOW_HEADERS = 'Content-Type, Authorization, X-Client-Info'
CORS_MAX_AGE = '86400'


def apply_cors(response):
    """Permissive CORS headers for the extension's origin only."""
    origin = request.headers.get('Origin', '')
    prefixes = current_app.config.get('EXTENSION_ORIGIN_PREFIXES', ())
    if origin and any(origin.startswith(p) for p in prefixes):
        response.headers['Access-Control-Allow-Origin'] = origin
        response.headers['Access-Control-Allow-Credentials'] = 'true'
        response.headers['Access-Control-Allow-Methods'] = CORS_ALLOW_METHODS
        response.headers['Access-Control-Allow-Headers'] = CORS_ALLOW_HEADERS
        response.headers.add('Vary', 'Origin')
        if request.method == 'OPTIONS':
            response.headers['Access-Control-Max-Age'] = CORS_MAX_AGE
    return response


extension_bp.after_request(apply_cors)


@extension_bp.route('/submissions/track', methods=['POST'])
@login_required
def track_submission():
    """Ingest one accepted-submission event."""
    service = IngestService(current_user.id)
    try:
        result = service.track(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except TransactionConflictError as e:
        return jsonify({'error': str(e)}), 500
    except Exception as e:
        logger.exception(f"Error tracking submission for user {current_user.id}")
        return jsonify({'error': str(e) or 'Failed to track submission'}), 500

    return jsonify(result.to_dict()), 201


@extension_bp.route('/extension/offline-sync', methods=['POST'])
@login_required
def offline_sync():
    """Replay a batch queued by the extension while offline."""
    service = IngestService(current_user.id)
    try:
        results = service.offline_sync(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception(f"Error syncing offline data for user {current_user.id}")
        return jsonify({'error': 'Failed to sync offline data', 'message': str(e)}), 500

    if results['errors']:
        logger.warning(
            f"Offline sync for user {current_user.id} finished with "
            f"{len(results['errors'])} error(s)"
        )
    return jsonify(results)
