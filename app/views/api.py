import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from app.services.stats_service import StatsService
from app.views.extension import apply_cors

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')
api_bp.after_request(apply_cors)


@api_bp.route('/stats')
@login_required
def stats():
    return jsonify(StatsService.get_user_stats(current_user.id))


@api_bp.route('/user/activities')
@login_required
def activities():
    days = request.args.get('days', 365, type=int)
    days = min(max(days, 1), 366)
    return jsonify(StatsService.get_activities(current_user.id, days=days))
