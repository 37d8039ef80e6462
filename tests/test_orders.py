"""
Tests for admin order management and customer order creation.
"""

from datetime import timedelta

import pytest

from models import db, MealPack, MenuItem, Order
from models.base import utcnow

STATUSES = ('pending', 'confirmed', 'delivered', 'cancelled')
INVALID_STATUS_MESSAGE = 'Invalid status. Must be one of: pending, confirmed, delivered, cancelled'


# ============================================
# STATUS UPDATES
# ============================================

@pytest.mark.parametrize('current', STATUSES)
def test_non_member_status_rejected_from_any_state(admin_client, user, make_order, current):
    order = make_order(user, status=current)
    response = admin_client.put(f'/api/admin/orders/{order.id}/status', json={'status': 'shipped'})
    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'error': INVALID_STATUS_MESSAGE}
    assert db.session.get(Order, order.id).status == current


@pytest.mark.parametrize('current', STATUSES)
@pytest.mark.parametrize('target', STATUSES)
def test_member_status_accepted_from_any_state(admin_client, user, make_order, current, target):
    order = make_order(user, status=current)
    response = admin_client.put(f'/api/admin/orders/{order.id}/status', json={'status': target})
    assert response.status_code == 200
    assert response.get_json()['data']['status'] == target


def test_status_is_required(admin_client, user, make_order):
    order = make_order(user)
    response = admin_client.put(f'/api/admin/orders/{order.id}/status', json={})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Status is required'


def test_status_checked_before_order_lookup(admin_client):
    response = admin_client.put('/api/admin/orders/missing/status', json={'status': 'bogus'})
    assert response.status_code == 400
    assert response.get_json()['error'] == INVALID_STATUS_MESSAGE


def test_unknown_order_returns_404(admin_client):
    response = admin_client.put('/api/admin/orders/missing/status', json={'status': 'delivered'})
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Order not found'


def test_status_update_audits_old_and_new(admin_client, admin, user, make_order, audits):
    order = make_order(user, status='pending')
    admin_client.put(f'/api/admin/orders/{order.id}/status', json={'status': 'confirmed'})
    entry = audits('UPDATE_ORDER_STATUS', success=True)[-1]
    assert entry.user_id == admin.id
    assert entry.details == {'orderId': order.id, 'oldStatus': 'pending', 'newStatus': 'confirmed'}


def test_status_update_requires_admin(user_client, user, make_order, audits):
    order = make_order(user)
    response = user_client.put(f'/api/admin/orders/{order.id}/status', json={'status': 'delivered'})
    assert response.status_code == 403
    assert db.session.get(Order, order.id).status == 'pending'
    assert audits('UPDATE_ORDER_STATUS', success=False)[-1].details['order_id'] == order.id


def test_enforced_transitions_reject_backward_jump(app, admin_client, user, make_order):
    app.config['ENFORCE_ORDER_TRANSITIONS'] = True
    order = make_order(user, status='delivered')
    response = admin_client.put(f'/api/admin/orders/{order.id}/status', json={'status': 'pending'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Cannot change order status from delivered to pending'

    forward = make_order(user, status='pending')
    ok = admin_client.put(f'/api/admin/orders/{forward.id}/status', json={'status': 'confirmed'})
    assert ok.status_code == 200


# ============================================
# BULK UPDATE
# ============================================

def test_bulk_update_requires_ids(admin_client):
    for body in ({'status': 'confirmed'}, {'orderIds': [], 'status': 'confirmed'}):
        response = admin_client.post('/api/admin/orders/bulk-update', json=body)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Order IDs are required'


def test_bulk_update_validates_status(admin_client):
    response = admin_client.post('/api/admin/orders/bulk-update', json={'orderIds': ['a'], 'status': 'lost'})
    assert response.status_code == 400
    assert response.get_json()['error'] == INVALID_STATUS_MESSAGE


def test_bulk_update_changes_listed_orders(admin_client, user, make_order):
    first = make_order(user)
    second = make_order(user)
    untouched = make_order(user)

    response = admin_client.post('/api/admin/orders/bulk-update', json={
        'orderIds': [first.id, second.id, 'unknown'], 'status': 'delivered',
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert {row['id'] for row in data} == {first.id, second.id}
    assert all(row['status'] == 'delivered' for row in data)
    assert db.session.get(Order, untouched.id).status == 'pending'


# ============================================
# LISTING AND STATS
# ============================================

def test_order_stats_default_to_zero(admin_client):
    response = admin_client.get('/api/admin/orders/stats')
    assert response.status_code == 200
    assert response.get_json()['data'] == {
        'totalOrders': 0,
        'pendingOrders': 0,
        'confirmedOrders': 0,
        'deliveredOrders': 0,
        'cancelledOrders': 0,
        'totalRevenue': 0,
        'averageOrderValue': 0,
    }


def test_order_stats_counts(admin_client, user, make_order):
    make_order(user, status='pending', total_price=10.0)
    make_order(user, status='delivered', total_price=30.0)
    data = admin_client.get('/api/admin/orders/stats').get_json()['data']
    assert data['totalOrders'] == 2
    assert data['pendingOrders'] == 1
    assert data['deliveredOrders'] == 1
    assert data['totalRevenue'] == 40.0
    assert data['averageOrderValue'] == 20.0


def test_list_orders_filters(admin_client, user, make_user, make_order):
    other = make_user(email='other@example.com')
    mine = make_order(user, status='pending')
    make_order(user, status='delivered')
    make_order(other, status='pending')

    by_status = admin_client.get('/api/admin/orders?status=pending').get_json()['data']
    assert len(by_status) == 2
    by_both = admin_client.get(f'/api/admin/orders?status=pending&userId={user.id}').get_json()['data']
    assert [order['id'] for order in by_both] == [mine.id]
    assert by_both[0]['user_email'] == 'user@example.com'


def test_list_orders_rejects_unknown_status_filter(admin_client):
    response = admin_client.get('/api/admin/orders?status=lost')
    assert response.status_code == 400


def test_order_detail_includes_items(admin_client, user, make_menu, make_order):
    menu = make_menu(items=[('Risotto', 13.0)])
    order = make_order(user, menu=menu, total_meals=2)
    data = admin_client.get(f'/api/admin/orders/{order.id}').get_json()['data']
    assert data['items'][0]['menu_item_name'] == 'Risotto'
    assert data['items'][0]['quantity'] == 2


@pytest.mark.parametrize('limit', ['0', '101', 'abc'])
def test_recent_orders_limit_bounds(admin_client, limit):
    response = admin_client.get(f'/api/admin/recent-orders?limit={limit}')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Limit must be between 1 and 100'


def test_recent_orders_newest_first(admin_client, user, make_order):
    now = utcnow()
    old = make_order(user, order_date=now - timedelta(days=2))
    new = make_order(user, order_date=now)
    data = admin_client.get('/api/admin/recent-orders?limit=1').get_json()['data']
    assert [order['id'] for order in data] == [new.id]
    data = admin_client.get('/api/admin/recent-orders').get_json()['data']
    assert [order['id'] for order in data] == [new.id, old.id]


# ============================================
# ORDER CREATION
# ============================================

@pytest.fixture
def live_menu(make_menu):
    return make_menu(published=True, items=[('Curry', 12.0), ('Soup', 6.5)])


def item_id(name):
    return MenuItem.query.filter_by(name=name).one().id


def test_create_order_deducts_oldest_pack_first(user_client, user, live_menu, make_pack, audits):
    now = utcnow()
    oldest = make_pack(user, size=10, remaining=3, purchased=now - timedelta(days=10))
    newer = make_pack(user, size=10, purchased=now - timedelta(days=1))

    response = user_client.post('/api/orders/create', json={
        'userId': user.id,
        'selectedMeals': {item_id('Curry'): 4, item_id('Soup'): 1},
        'totalMeals': 5,
    })
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['mealsRemaining'] == 8
    assert body['message'] == 'Order confirmed! 5 meals have been deducted from your balance.'

    assert db.session.get(MealPack, oldest.id).remaining_balance == 0
    assert db.session.get(MealPack, newer.id).remaining_balance == 8

    order = db.session.get(Order, body['orderId'])
    assert order.status == 'confirmed'
    assert order.total_meals == 5
    assert order.total_price == 54.5
    assert order.menu_id == live_menu.id
    assert audits('CREATE_ORDER', success=True)[-1].details['mealsRemaining'] == 8


def test_create_order_insufficient_balance(user_client, user, live_menu, make_pack, audits):
    make_pack(user, size=10, remaining=2)
    response = user_client.post('/api/orders/create', json={
        'userId': user.id, 'selectedMeals': {item_id('Curry'): 3},
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == 'You only have 2 meals available. Please reduce your order.'
    assert Order.query.count() == 0
    assert MealPack.query.one().remaining_balance == 2
    assert audits('CREATE_ORDER', success=False)[-1].reason == 'INSUFFICIENT_BALANCE'


def test_create_order_skips_expired_packs(user_client, user, live_menu, make_pack):
    now = utcnow()
    make_pack(user, size=10, purchased=now - timedelta(days=40), expiry=now - timedelta(days=1))
    make_pack(user, size=10, remaining=2, purchased=now)

    response = user_client.post('/api/orders/create', json={
        'userId': user.id, 'selectedMeals': {item_id('Curry'): 3},
    })
    assert response.status_code == 400
    assert 'expired' in response.get_json()['error']
    assert Order.query.count() == 0


def test_meals_remaining_leaves_out_expired_packs(user_client, user, live_menu, make_pack):
    now = utcnow()
    make_pack(user, size=10, remaining=5, purchased=now - timedelta(days=40), expiry=now - timedelta(days=1))
    make_pack(user, size=10, purchased=now)

    response = user_client.post('/api/orders/create', json={
        'userId': user.id, 'selectedMeals': {item_id('Curry'): 3},
    })
    assert response.status_code == 200
    assert response.get_json()['mealsRemaining'] == 7


def test_create_order_for_someone_else_is_rejected(user_client, user, live_menu, make_pack, audits):
    make_pack(user)
    response = user_client.post('/api/orders/create', json={
        'userId': 'someone-else', 'selectedMeals': {item_id('Curry'): 1},
    })
    assert response.status_code == 401
    assert audits('CREATE_ORDER', success=False)[-1].reason == 'USER_MISMATCH'


def test_create_order_rejects_item_not_on_menu(user_client, user, live_menu, make_pack):
    make_pack(user)
    response = user_client.post('/api/orders/create', json={
        'userId': user.id, 'selectedMeals': {'not-an-item': 1},
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Selected meal is not on the current menu'


def test_create_order_requires_selection(user_client, user, live_menu):
    response = user_client.post('/api/orders/create', json={'userId': user.id, 'selectedMeals': {}})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Please select at least one meal'


def test_create_order_without_published_menu(user_client, user, make_pack):
    make_pack(user)
    response = user_client.post('/api/orders/create', json={
        'userId': user.id, 'selectedMeals': {'anything': 1},
    })
    assert response.status_code == 404


def test_customer_order_history(user_client, user, make_user, make_order):
    mine = make_order(user)
    make_order(make_user(email='other@example.com'))
    data = user_client.get('/api/user/orders').get_json()['data']
    assert [order['id'] for order in data] == [mine.id]
