"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify
from sqlalchemy import text
from linq.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 as health_check")).fetchone()

        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    except Exception as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
        }), 500


@main_bp.route('/health/cache')
def health_cache():
    """
    Cache health check endpoint.

    Carts live only in Redis, so an unreachable cache is reported as 503.
    """
    from linq.exceptions import LinqError
    from linq.services.cache_service import get_cache

    cache = get_cache()
    if not cache.is_available():
        return jsonify({
            'status': 'unhealthy',
            'cache': 'unavailable',
            'redis': 'disconnected',
        }), 503

    try:
        cache.set('health_check', {'test': 'ok'}, ttl=10)
        result = cache.get('health_check')
    except LinqError as e:
        return jsonify({
            'status': 'unhealthy',
            'cache': 'error',
            'error': e.message,
        }), 503

    if result.get('test') != 'ok':
        return jsonify({
            'status': 'unhealthy',
            'cache': 'error',
            'redis': 'connected_but_failing',
        }), 503
    return jsonify({
        'status': 'ok',
        'cache': 'connected',
        'redis': 'healthy',
    }), 200
