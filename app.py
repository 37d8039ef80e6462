"""
Meal Service

Flask application serving the JSON API for meal pack purchases, weekly
menus and orders, plus the admin back-office.
"""

import structlog
from flask import Flask, jsonify, request
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import get_config
from constants.validation import (
    VALID_ORDER_STATUSES, VALID_ROLES, RECENT_ORDERS_DEFAULT, RECENT_ORDERS_MAX, RECENT_ORDERS_MIN,
    REASON_CANNOT_CHANGE_OWN_ROLE, REASON_CANNOT_DEACTIVATE_SELF, REASON_USER_MISMATCH,
)
from models import db
from models.base import utcnow, isoformat
from schemas import (
    SignupRequest, LoginRequest, PurchasePackRequest, CreateOrderRequest,
    MenuCreate, MenuUpdate, MenuItemCreate, MenuItemUpdate,
    OrderStatusUpdate, BulkOrderStatusUpdate,
    PackTemplateCreate, PackTemplateUpdate,
    UserRoleUpdate, UserStatusUpdate,
)
from services import menu_service, order_service, pack_service, stats_service, user_service
from utils import audit
from utils.auth import Principal, admin_required, current_principal, login_required, login_user, logout_user
from utils.api import (
    get_json_body, json_endpoint, json_error, json_success, parse_body,
    parse_bool_arg, parse_date_arg, parse_int_arg, require_id,
)
from utils.cache import admin_cache
from utils.errors import (
    AuthenticationError, AuthorizationError, BusinessError, ValidationError,
)
from utils.logging_setup import configure_logging

logger = structlog.get_logger(__name__)

app = Flask(__name__)
app.config.from_object(get_config())
app.json.sort_keys = app.config['JSON_SORT_KEYS']

configure_logging(app)
db.init_app(app)
migrate = Migrate(app, db)

with app.app_context():
    db.create_all()


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return json_error(e.name, e.code)


def _status_filter(value):
    if value and value not in VALID_ORDER_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_ORDER_STATUSES)}")
    return value or None


# ============================================
# ROUTES - AUTH
# ============================================

@app.route('/api/auth/signup', methods=['POST'])
@json_endpoint('Failed to create account. Please try again.')
def signup():
    payload = parse_body(SignupRequest, get_json_body())
    try:
        user = user_service.create_user(payload)
    except ValidationError as e:
        logger.warning('Signup rejected', email=payload.email, reason=e.code)
        audit.log_failed_action(None, 'SIGNUP_ATTEMPT', 'users', e.code, {'email': payload.email})
        raise

    audit.log_action(user.id, 'USER_REGISTERED', 'users', {'email': user.email})
    return json_success(user={'id': user.id, 'name': user.name, 'email': user.email, 'role': user.role},
                        status=201)


@app.route('/api/auth/login', methods=['POST'])
@json_endpoint('Failed to sign in. Please try again.')
def login():
    payload = parse_body(LoginRequest, get_json_body())
    try:
        user = user_service.authenticate(payload.email, payload.password)
    except (AuthenticationError, AuthorizationError) as e:
        logger.warning('Login rejected', email=payload.email, reason=e.code)
        audit.log_failed_action(e.details.get('user_id'), 'LOGIN', 'auth', e.code, {'email': payload.email})
        raise

    login_user(user)
    logger.info('User logged in', user_id=user.id)
    audit.log_action(user.id, 'LOGIN', 'auth')
    return json_success(user=Principal.from_user(user).to_dict())


@app.route('/api/auth/logout', methods=['POST'])
@json_endpoint('Failed to sign out. Please try again.')
def logout():
    principal = current_principal()
    logout_user()
    if principal is not None:
        audit.log_action(principal.id, 'LOGOUT', 'auth')
    return json_success(message='Logged out')


@app.route('/api/auth/session')
@json_endpoint('Failed to fetch session. Please try again.')
def get_session():
    principal = current_principal()
    return json_success(authenticated=principal is not None,
                        user=principal.to_dict() if principal else None)


# ============================================
# ROUTES - CUSTOMER
# ============================================

@app.route('/api/packs/purchase', methods=['POST'])
@json_endpoint('Failed to purchase pack. Please try again.')
@login_required('PURCHASE_PACK', 'meal_packs')
def purchase_pack(principal):
    data = get_json_body()
    # Customers may only buy for themselves; checked before the pack size
    if data.get('userId') != principal.id:
        logger.warning(
            'Pack purchase rejected - user mismatch', user_id=principal.id, request_user_id=data.get('userId'),
        )
        audit.log_failed_action(principal.id, 'PURCHASE_PACK', 'meal_packs', REASON_USER_MISMATCH,
                                {'requestUserId': data.get('userId')})
        raise AuthenticationError()

    payload = parse_body(PurchasePackRequest, data, context={'pack_sizes': app.config['VALID_PACK_SIZES']})
    pack = pack_service.purchase_pack(principal.id, payload.pack_size,
                                      validity_days=app.config.get('PACK_VALIDITY_DAYS'))
    audit.log_action(principal.id, 'PURCHASE_PACK', 'meal_packs',
                     {'packId': pack.id, 'packSize': pack.pack_size})
    return json_success(pack=pack.to_dict(), message=f'Successfully purchased {pack.pack_size} meal pack!')


@app.route('/api/user/balance')
@json_endpoint('Failed to fetch meal balance. Please try again.')
@login_required('CHECK_BALANCE', 'meal_packs')
def user_balance(principal):
    balance = pack_service.available_balance(principal.id)
    logger.debug('Meal balance fetched', user_id=principal.id, balance=balance)
    return json_success(balance=balance)


@app.route('/api/user/packs')
@json_endpoint('Failed to fetch meal packs. Please try again.')
@login_required('ACCESS_USER_PACKS', 'meal_packs')
def user_packs(principal):
    packs = pack_service.user_packs(principal.id)
    return json_success([pack.to_dict() for pack in packs])


@app.route('/api/user/orders')
@json_endpoint('Failed to fetch orders. Please try again.')
@login_required('ACCESS_USER_ORDERS', 'orders')
def user_orders(principal):
    orders = order_service.user_orders(principal.id)
    return json_success([order.to_dict(include_items=True) for order in orders])


@app.route('/api/orders/create', methods=['POST'])
@json_endpoint('Failed to process order. Please try again.')
@login_required('CREATE_ORDER', 'orders')
def create_order(principal):
    data = get_json_body()
    if data.get('userId') != principal.id:
        logger.warning(
            'Order creation rejected - user mismatch', user_id=principal.id, request_user_id=data.get('userId'),
        )
        audit.log_failed_action(principal.id, 'CREATE_ORDER', 'orders', REASON_USER_MISMATCH,
                                {'requestUserId': data.get('userId')})
        raise AuthenticationError()

    payload = parse_body(CreateOrderRequest, data)
    try:
        order, meals_remaining = order_service.create_order(principal.id, payload)
    except BusinessError as e:
        logger.info('Order creation rejected', user_id=principal.id, reason=e.code, **e.details)
        audit.log_failed_action(principal.id, 'CREATE_ORDER', 'orders', e.code, e.details)
        raise

    audit.log_action(principal.id, 'CREATE_ORDER', 'orders', {
        'orderId': order.id, 'totalMeals': order.total_meals, 'mealsRemaining': meals_remaining,
    })
    return json_success(
        orderId=order.id,
        mealsRemaining=meals_remaining,
        message=f'Order confirmed! {order.total_meals} meals have been deducted from your balance.',
    )


@app.route('/api/menu/current')
@json_endpoint('Failed to fetch menu. Please try again.')
def get_current_menu():
    menu = menu_service.current_menu()
    data = menu.to_dict()
    data['items'] = [item.to_dict() for item in menu.items if item.is_available]
    return json_success(data)


@app.route('/api/health')
@json_endpoint('Health check failed')
def health():
    report = stats_service.health_check(app.config['APP_VERSION'])
    if report['status'] != 'healthy':
        return jsonify({'success': False, 'error': 'Database unavailable', 'data': report}), 503
    return json_success(report)


# ============================================
# ROUTES - ADMIN MENUS
# ============================================

@app.route('/api/admin/menus')
@json_endpoint('Failed to fetch menus. Please try again.')
@admin_required('ACCESS_MENUS_LIST', 'menus')
def admin_list_menus(principal):
    filters = {
        'published': parse_bool_arg(request.args.get('published')),
        'start_date': parse_date_arg(request.args.get('startDate'), 'startDate'),
        'end_date': parse_date_arg(request.args.get('endDate'), 'endDate'),
    }
    menus = menu_service.list_menus(**filters)
    audit.log_action(principal.id, 'FETCH_MENUS_LIST', 'menus', {'count': len(menus)})
    return json_success([menu.to_dict() for menu in menus])


@app.route('/api/admin/menus', methods=['POST'])
@json_endpoint('Failed to create menu. Please try again.')
@admin_required('CREATE_MENU', 'menus')
def admin_create_menu(principal):
    payload = parse_body(MenuCreate, get_json_body())
    menu = menu_service.create_menu(payload, created_by=principal.id)
    logger.info('Admin created menu', user_id=principal.id, menu_id=menu.id)
    audit.log_action(principal.id, 'CREATE_MENU', 'menus', {
        'menuId': menu.id,
        'weekStartDate': isoformat(menu.week_start_date),
        'weekEndDate': isoformat(menu.week_end_date),
    })
    return json_success(menu.to_dict(include_items=True), status=201)


@app.route('/api/admin/menus/status')
@json_endpoint('Failed to fetch menu status. Please try again.')
@admin_required('ACCESS_MENU_STATUS', 'menus')
def admin_menu_status(principal):
    summary = menu_service.menu_status_summary()
    audit.log_action(principal.id, 'FETCH_MENU_STATUS', 'menus', summary)
    return json_success(summary)


@app.route('/api/admin/menus/<menu_id>')
@json_endpoint('Failed to fetch menu details. Please try again.')
@admin_required('ACCESS_MENU_DETAILS', 'menus')
def admin_get_menu(principal, menu_id):
    menu = menu_service.get_menu(require_id(menu_id, 'Menu'))
    audit.log_action(principal.id, 'FETCH_MENU_DETAILS', 'menus', {'menuId': menu.id})
    return json_success(menu.to_dict(include_items=True))


@app.route('/api/admin/menus/<menu_id>', methods=['PUT'])
@json_endpoint('Failed to update menu. Please try again.')
@admin_required('UPDATE_MENU', 'menus')
def admin_update_menu(principal, menu_id):
    menu_id = require_id(menu_id, 'Menu')
    payload = parse_body(MenuUpdate, get_json_body())
    menu = menu_service.update_menu(menu_id, payload)
    audit.log_action(principal.id, 'UPDATE_MENU', 'menus', {
        'menuId': menu.id,
        'weekStartDate': isoformat(menu.week_start_date),
        'weekEndDate': isoformat(menu.week_end_date),
    })
    return json_success(menu.to_dict(include_items=True))


@app.route('/api/admin/menus/<menu_id>', methods=['DELETE'])
@json_endpoint('Failed to delete menu. Please try again.')
@admin_required('DELETE_MENU', 'menus')
def admin_delete_menu(principal, menu_id):
    result = menu_service.delete_menu(require_id(menu_id, 'Menu'))
    logger.info('Admin deleted menu', user_id=principal.id, menu_id=menu_id)
    audit.log_action(principal.id, 'DELETE_MENU', 'menus', {'menuId': result['id']})
    return json_success(message='Menu deleted successfully')


@app.route('/api/admin/menus/<menu_id>/publish', methods=['POST'])
@json_endpoint('Failed to publish menu. Please try again.')
@admin_required('PUBLISH_MENU', 'menus')
def admin_publish_menu(principal, menu_id):
    menu, unpublished_ids = menu_service.publish_menu(require_id(menu_id, 'Menu'))
    logger.info(
        'Admin published menu', user_id=principal.id, menu_id=menu.id, unpublished_count=len(unpublished_ids),
    )
    audit.log_action(principal.id, 'PUBLISH_MENU', 'menus', {
        'menuId': menu.id, 'isPublished': True, 'unpublishedMenuIds': unpublished_ids,
    })
    return json_success(menu.to_dict(), message='Menu published successfully')


@app.route('/api/admin/menus/<menu_id>/unpublish', methods=['POST'])
@json_endpoint('Failed to unpublish menu. Please try again.')
@admin_required('UNPUBLISH_MENU', 'menus')
def admin_unpublish_menu(principal, menu_id):
    menu = menu_service.unpublish_menu(require_id(menu_id, 'Menu'))
    logger.info('Admin unpublished menu', user_id=principal.id, menu_id=menu.id)
    audit.log_action(principal.id, 'UNPUBLISH_MENU', 'menus', {'menuId': menu.id, 'isPublished': False})
    return json_success(menu.to_dict(), message='Menu unpublished successfully')


@app.route('/api/admin/menus/<menu_id>/items', methods=['POST'])
@json_endpoint('Failed to add menu item. Please try again.')
@admin_required('CREATE_MENU_ITEM', 'menu_items')
def admin_add_menu_item(principal, menu_id):
    menu_id = require_id(menu_id, 'Menu')
    payload = parse_body(MenuItemCreate, get_json_body())
    item = menu_service.add_menu_item(menu_id, payload)
    audit.log_action(principal.id, 'CREATE_MENU_ITEM', 'menu_items', {'menuId': menu_id, 'itemId': item.id})
    return json_success(item.to_dict(), status=201)


@app.route('/api/admin/menus/<menu_id>/items/<item_id>', methods=['PUT'])
@json_endpoint('Failed to update menu item. Please try again.')
@admin_required('UPDATE_MENU_ITEM', 'menu_items')
def admin_update_menu_item(principal, menu_id, item_id):
    menu_id = require_id(menu_id, 'Menu')
    item_id = require_id(item_id, 'Item')
    payload = parse_body(MenuItemUpdate, get_json_body())
    item = menu_service.update_menu_item(menu_id, item_id, payload)
    audit.log_action(principal.id, 'UPDATE_MENU_ITEM', 'menu_items', {
        'menuId': menu_id, 'itemId': item.id, 'fields': sorted(payload.provided()),
    })
    return json_success(item.to_dict())


@app.route('/api/admin/menus/<menu_id>/items/<item_id>', methods=['DELETE'])
@json_endpoint('Failed to delete menu item. Please try again.')
@admin_required('DELETE_MENU_ITEM', 'menu_items')
def admin_delete_menu_item(principal, menu_id, item_id):
    menu_id = require_id(menu_id, 'Menu')
    item_id = menu_service.delete_menu_item(menu_id, require_id(item_id, 'Item'))
    audit.log_action(principal.id, 'DELETE_MENU_ITEM', 'menu_items', {'menuId': menu_id, 'itemId': item_id})
    return json_success(message='Menu item deleted successfully')


# ============================================
# ROUTES - ADMIN ORDERS
# ============================================

@app.route('/api/admin/orders')
@json_endpoint('Failed to fetch orders. Please try again.')
@admin_required('ACCESS_ORDERS_LIST', 'orders')
def admin_list_orders(principal):
    filters = {
        'status': _status_filter(request.args.get('status')),
        'user_id': request.args.get('userId') or None,
        'start_date': parse_date_arg(request.args.get('startDate'), 'startDate'),
        'end_date': parse_date_arg(request.args.get('endDate'), 'endDate'),
    }
    orders = order_service.list_orders(**filters)
    audit.log_action(principal.id, 'FETCH_ORDERS_LIST', 'orders', {
        'count': len(orders),
        'filters': {key: value for key, value in request.args.items()
                    if key in ('status', 'userId', 'startDate', 'endDate')},
    })
    return json_success([order.to_dict() for order in orders])


@app.route('/api/admin/orders/stats')
@json_endpoint('Failed to fetch order statistics. Please try again.')
@admin_required('ACCESS_ORDER_STATS', 'orders')
def admin_order_stats(principal):
    stats = order_service.order_stats()
    data = {
        'totalOrders': stats.get('total_orders') or 0,
        'pendingOrders': stats.get('pending_orders') or 0,
        'confirmedOrders': stats.get('confirmed_orders') or 0,
        'deliveredOrders': stats.get('delivered_orders') or 0,
        'cancelledOrders': stats.get('cancelled_orders') or 0,
        'totalRevenue': stats.get('total_revenue') or 0,
        'averageOrderValue': stats.get('average_order_value') or 0,
    }
    audit.log_action(principal.id, 'FETCH_ORDER_STATS', 'orders', {'totalOrders': data['totalOrders']})
    return json_success(data)


@app.route('/api/admin/orders/bulk-update', methods=['POST'])
@json_endpoint('Failed to bulk update orders. Please try again.')
@admin_required('BULK_UPDATE_ORDERS', 'orders')
def admin_bulk_update_orders(principal):
    payload = parse_body(BulkOrderStatusUpdate, get_json_body())
    orders = order_service.bulk_update_status(
        payload.order_ids, payload.status, enforce=app.config['ENFORCE_ORDER_TRANSITIONS'])
    logger.info(
        'Admin bulk updated orders', user_id=principal.id, requested_count=len(payload.order_ids),
        updated_count=len(orders), new_status=payload.status,
    )
    audit.log_action(principal.id, 'BULK_UPDATE_ORDERS', 'orders', {
        'orderIds': payload.order_ids[:5],
        'status': payload.status,
        'updatedCount': len(orders),
    })
    return json_success([
        {'id': order.id, 'status': order.status, 'updated_at': isoformat(order.updated_at)}
        for order in orders
    ])


@app.route('/api/admin/orders/<order_id>')
@json_endpoint('Failed to fetch order details. Please try again.')
@admin_required('ACCESS_ORDER_DETAILS', 'orders')
def admin_get_order(principal, order_id):
    order = order_service.get_order(require_id(order_id, 'Order'))
    audit.log_action(principal.id, 'FETCH_ORDER_DETAILS', 'orders', {'orderId': order.id})
    return json_success(order.to_dict(include_items=True))


@app.route('/api/admin/orders/<order_id>/status', methods=['PUT'])
@json_endpoint('Failed to update order status. Please try again.')
@admin_required('UPDATE_ORDER_STATUS', 'orders')
def admin_update_order_status(principal, order_id):
    order_id = require_id(order_id, 'Order')
    payload = parse_body(OrderStatusUpdate, get_json_body())
    order, old_status = order_service.update_order_status(
        order_id, payload.status, enforce=app.config['ENFORCE_ORDER_TRANSITIONS'])
    logger.info(
        'Admin updated order status', user_id=principal.id, order_id=order.id, old_status=old_status, new_status=order.status,
    )
    audit.log_action(principal.id, 'UPDATE_ORDER_STATUS', 'orders', {
        'orderId': order.id, 'oldStatus': old_status, 'newStatus': order.status,
    })
    return json_success(order.to_dict(), message='Order status updated successfully')


# ============================================
# ROUTES - ADMIN DASHBOARD
# ============================================

@app.route('/api/admin/recent-orders')
@json_endpoint('Failed to fetch recent orders. Please try again.')
@admin_required('ACCESS_RECENT_ORDERS', 'orders')
def admin_recent_orders(principal):
    message = f'Limit must be between {RECENT_ORDERS_MIN} and {RECENT_ORDERS_MAX}'
    limit = parse_int_arg(request.args.get('limit'), message)
    if limit is None:
        limit = RECENT_ORDERS_DEFAULT
    if not RECENT_ORDERS_MIN <= limit <= RECENT_ORDERS_MAX:
        raise ValidationError(message)

    cache_key = f'recent_orders:{limit}'
    data = admin_cache.get(cache_key, app.config['STATS_CACHE_TTL'])
    if data is None:
        data = [order.to_dict() for order in order_service.recent_orders(limit)]
        admin_cache.set(cache_key, data, app.config['STATS_CACHE_TTL'])
    audit.log_action(principal.id, 'FETCH_RECENT_ORDERS', 'orders', {'limit': limit, 'count': len(data)})
    return json_success(data)


@app.route('/api/admin/stats')
@json_endpoint('Failed to fetch dashboard statistics. Please try again.')
@admin_required('ACCESS_DASHBOARD_STATS', 'admin')
def admin_dashboard_stats(principal):
    stats = stats_service.dashboard_stats(app.config['STATS_CACHE_TTL'])
    logger.info('Admin accessing dashboard statistics', user_id=principal.id)
    audit.log_action(principal.id, 'FETCH_DASHBOARD_STATS', 'admin', {'statsKeys': list(stats)})
    return json_success(stats)


# ============================================
# ROUTES - ADMIN PACKS
# ============================================

@app.route('/api/admin/packs/templates')
@json_endpoint('Failed to fetch pack templates. Please try again.')
@admin_required('ACCESS_PACK_TEMPLATES_LIST', 'pack_templates')
def admin_list_pack_templates(principal):
    active = parse_bool_arg(request.args.get('active'))
    templates = pack_service.list_templates(active=active)
    audit.log_action(principal.id, 'FETCH_PACK_TEMPLATES_LIST', 'pack_templates', {'count': len(templates)})
    return json_success(
        [template.to_dict() for template in templates],
        meta={
            'count': len(templates),
            'filters': {'active': active},
            'timestamp': isoformat(utcnow()),
        },
    )


@app.route('/api/admin/packs/templates', methods=['POST'])
@json_endpoint('Failed to create pack template. Please try again.')
@admin_required('CREATE_PACK_TEMPLATE', 'pack_templates')
def admin_create_pack_template(principal):
    payload = parse_body(PackTemplateCreate, get_json_body())
    template = pack_service.create_template(payload)
    audit.log_action(principal.id, 'CREATE_PACK_TEMPLATE', 'pack_templates', {
        'templateId': template.id, 'name': template.name, 'size': template.size, 'price': template.price,
    })
    return json_success(template.to_dict(), status=201)


@app.route('/api/admin/packs/templates/<template_id>')
@json_endpoint('Failed to fetch pack template details. Please try again.')
@admin_required('ACCESS_PACK_TEMPLATE_DETAILS', 'pack_templates')
def admin_get_pack_template(principal, template_id):
    template = pack_service.get_template(require_id(template_id, 'Template'))
    audit.log_action(principal.id, 'FETCH_PACK_TEMPLATE_DETAILS', 'pack_templates', {'templateId': template.id})
    return json_success(template.to_dict())


@app.route('/api/admin/packs/templates/<template_id>', methods=['PUT'])
@json_endpoint('Failed to update pack template. Please try again.')
@admin_required('UPDATE_PACK_TEMPLATE', 'pack_templates')
def admin_update_pack_template(principal, template_id):
    template_id = require_id(template_id, 'Template')
    payload = parse_body(PackTemplateUpdate, get_json_body())
    template = pack_service.update_template(template_id, payload)
    audit.log_action(principal.id, 'UPDATE_PACK_TEMPLATE', 'pack_templates', {
        'templateId': template.id, 'fields': sorted(payload.provided()),
    })
    return json_success(template.to_dict())


@app.route('/api/admin/packs/templates/<template_id>', methods=['DELETE'])
@json_endpoint('Failed to delete pack template. Please try again.')
@admin_required('DELETE_PACK_TEMPLATE', 'pack_templates')
def admin_delete_pack_template(principal, template_id):
    template_id = pack_service.delete_template(require_id(template_id, 'Template'))
    audit.log_action(principal.id, 'DELETE_PACK_TEMPLATE', 'pack_templates', {'templateId': template_id})
    return json_success(message='Pack template deleted successfully')


@app.route('/api/admin/packs/sales')
@json_endpoint('Failed to fetch pack sales. Please try again.')
@admin_required('ACCESS_PACK_SALES_LIST', 'meal_packs')
def admin_list_pack_sales(principal):
    filters = {
        'user_id': request.args.get('userId') or None,
        'pack_size': parse_int_arg(request.args.get('packSize'), 'packSize must be a number'),
        'start_date': parse_date_arg(request.args.get('startDate'), 'startDate'),
        'end_date': parse_date_arg(request.args.get('endDate'), 'endDate'),
        'active': parse_bool_arg(request.args.get('active')),
    }
    sales = pack_service.list_pack_sales(**filters)
    audit.log_action(principal.id, 'FETCH_PACK_SALES_LIST', 'meal_packs', {'count': len(sales)})
    return json_success(sales)


@app.route('/api/admin/packs/sales/stats')
@json_endpoint('Failed to fetch pack sales statistics. Please try again.')
@admin_required('ACCESS_PACK_SALES_STATS', 'meal_packs')
def admin_pack_sales_stats(principal):
    stats = pack_service.pack_sales_stats()
    audit.log_action(principal.id, 'FETCH_PACK_SALES_STATS', 'meal_packs', stats)
    return json_success(stats)


# ============================================
# ROUTES - ADMIN USERS
# ============================================

@app.route('/api/admin/users')
@json_endpoint('Failed to fetch users list. Please try again.')
@admin_required('ACCESS_USERS_LIST', 'users')
def admin_list_users(principal):
    role = request.args.get('role') or None
    if role and role not in VALID_ROLES:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")
    users = user_service.list_users(
        search=request.args.get('search') or None,
        role=role,
        active=parse_bool_arg(request.args.get('active')),
    )
    audit.log_action(principal.id, 'FETCH_USERS_LIST', 'users', {'count': len(users)})
    return json_success([user.to_dict() for user in users])


@app.route('/api/admin/users/<user_id>')
@json_endpoint('Failed to fetch user details. Please try again.')
@admin_required('ACCESS_USER_DETAILS', 'users')
def admin_get_user(principal, user_id):
    data = user_service.get_user_detail(require_id(user_id, 'User'))
    audit.log_action(principal.id, 'FETCH_USER_DETAILS', 'users', {'targetUserId': data['id']})
    return json_success(data)


@app.route('/api/admin/users/<user_id>/role', methods=['PUT'])
@json_endpoint('Failed to update user role. Please try again.')
@admin_required('UPDATE_USER_ROLE', 'users')
def admin_update_user_role(principal, user_id):
    user_id = require_id(user_id, 'User')
    if user_id == principal.id:
        logger.warning('Admin attempted to change own role', user_id=principal.id)
        audit.log_failed_action(principal.id, 'UPDATE_USER_ROLE', 'users', REASON_CANNOT_CHANGE_OWN_ROLE)
        raise ValidationError('Cannot change your own role')

    payload = parse_body(UserRoleUpdate, get_json_body())
    user, old_role = user_service.update_role(user_id, payload.role)
    logger.info(
        'Admin updated user role', user_id=principal.id, target_user_id=user.id, old_role=old_role, new_role=user.role,
    )
    audit.log_action(principal.id, 'UPDATE_USER_ROLE', 'users', {
        'targetUserId': user.id, 'oldRole': old_role, 'newRole': user.role,
    })
    return json_success(user.to_dict(), message='User role updated successfully')


@app.route('/api/admin/users/<user_id>/status', methods=['PUT'])
@json_endpoint('Failed to update user status. Please try again.')
@admin_required('UPDATE_USER_STATUS', 'users')
def admin_update_user_status(principal, user_id):
    user_id = require_id(user_id, 'User')
    # Refused before the body is read, whatever is_active says
    if user_id == principal.id:
        logger.warning('Admin attempted to change own status', user_id=principal.id)
        audit.log_failed_action(principal.id, 'UPDATE_USER_STATUS', 'users', REASON_CANNOT_DEACTIVATE_SELF)
        raise ValidationError('Cannot deactivate yourself')

    payload = parse_body(UserStatusUpdate, get_json_body())
    user, was_active = user_service.update_status(user_id, payload.is_active)
    logger.info(
        'Admin updated user status', user_id=principal.id, target_user_id=user.id, is_active=user.is_active,
    )
    audit.log_action(principal.id, 'UPDATE_USER_STATUS', 'users', {
        'targetUserId': user.id, 'wasActive': was_active, 'isActive': user.is_active,
    })
    return json_success(user.to_dict(), message='User status updated successfully')


if __name__ == '__main__':
    app.run(debug=app.config.get('DEBUG', False))
