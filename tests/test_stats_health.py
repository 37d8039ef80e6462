"""
Tests for the dashboard stats, the health probe and the JSON error paths.
"""

from datetime import date, timedelta

from services import menu_service, stats_service
from utils.monitoring import register_sink


def test_dashboard_stats_shape(admin_client, user, make_menu, make_order, make_pack):
    make_menu(start=date.today() - timedelta(days=1), published=True)
    make_menu(start=date.today() + timedelta(days=20))
    make_order(user, status='pending', total_price=12.0)
    make_order(user, status='delivered', total_price=8.0)
    make_pack(user, size=20)

    response = admin_client.get('/api/admin/stats')
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['users'] == {'total_users': 2, 'admin_count': 1, 'active_users': 2}
    assert data['orders'] == {
        'total_orders': 2,
        'total_revenue': 20.0,
        'pending_orders': 1,
        'confirmed_orders': 0,
        'delivered_orders': 1,
    }
    assert data['menus'] == {'total_menus': 2, 'published_menus': 1, 'active_menus': 1}
    assert data['packs'] == {'total_pack_sales': 1, 'meals_sold': 20}


def test_dashboard_stats_are_cached(app, admin_client, user, make_pack):
    app.config['STATS_CACHE_TTL'] = 300
    first = admin_client.get('/api/admin/stats').get_json()['data']
    make_pack(user, size=40)
    second = admin_client.get('/api/admin/stats').get_json()['data']
    assert second == first

    # Purchases through the service clear the cache
    user_client = app.test_client()
    with user_client.session_transaction() as sess:
        sess['user_id'] = user.id
    user_client.post('/api/packs/purchase', json={'packSize': 10, 'userId': user.id})
    third = admin_client.get('/api/admin/stats').get_json()['data']
    assert third['packs']['total_pack_sales'] == 2


def test_dashboard_requires_session(client):
    assert client.get('/api/admin/stats').status_code == 401


def test_dashboard_forbidden_for_customer(user_client):
    assert user_client.get('/api/admin/stats').status_code == 403


def test_health_reports_database_and_pool(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['status'] == 'healthy'
    assert data['database']['connected'] is True
    assert data['database']['response_time_ms'] >= 0
    assert set(data['pool']) >= {'total', 'idle', 'waiting'}
    assert data['version']


def test_health_unhealthy_returns_503(client, monkeypatch):
    monkeypatch.setattr(stats_service, 'health_check', lambda version: {
        'status': 'unhealthy', 'database': {'connected': False}, 'pool': {}, 'version': version,
    })
    response = client.get('/api/health')
    assert response.status_code == 503
    assert response.get_json()['success'] is False


def test_unexpected_error_returns_safe_message(admin_client, monkeypatch):
    captured = []
    register_sink(lambda error, context: captured.append((error, context)))

    def boom():
        raise RuntimeError('database exploded')

    monkeypatch.setattr(menu_service, 'menu_status_summary', boom)
    response = admin_client.get('/api/admin/menus/status')
    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'error': 'Failed to fetch menu status. Please try again.'}

    error, context = captured[-1]
    assert str(error) == 'database exploded'
    assert context['endpoint'] == '/api/admin/menus/status'
    assert context['method'] == 'GET'


def test_unknown_route_is_json(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Not Found'}


def test_wrong_method_is_json(client):
    response = client.delete('/api/auth/session')
    assert response.status_code == 405
    assert response.get_json()['success'] is False


def api_events(caplog):
    return [record.msg for record in caplog.records if record.name == 'utils.api']


def test_rejection_is_logged_with_route_params(admin_client, user, make_order, caplog):
    order = make_order(user)
    with caplog.at_level('WARNING', logger='utils.api'):
        response = admin_client.put(f'/api/admin/orders/{order.id}/status', json={'status': 'shipped'})
    assert response.status_code == 400

    event = api_events(caplog)[-1]
    assert event['event'] == 'Request rejected'
    assert event['code'] == 'VALIDATION_ERROR'
    assert event['status'] == 400
    assert event['action'] == 'admin_update_order_status'
    assert event['params'] == {'order_id': order.id}


def test_not_found_is_logged(admin_client, caplog):
    with caplog.at_level('WARNING', logger='utils.api'):
        response = admin_client.post('/api/admin/menus/does-not-exist/publish')
    assert response.status_code == 404

    event = api_events(caplog)[-1]
    assert event['code'] == 'NOT_FOUND'
    assert event['reason'] == 'Menu not found'
    assert event['params'] == {'menu_id': 'does-not-exist'}
