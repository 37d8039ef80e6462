"""
Tests for request schemas: required fields, exact client messages and
input cleaning.
"""

from datetime import date

import pytest

from schemas import (
    BulkOrderStatusUpdate, CreateOrderRequest, MenuCreate, MenuItemCreate, OrderStatusUpdate,
    PackTemplateUpdate, PurchasePackRequest, SignupRequest, UserRoleUpdate, UserStatusUpdate,
)
from utils.api import parse_body
from utils.errors import ValidationError


def error_of(schema, data, context=None):
    with pytest.raises(ValidationError) as excinfo:
        parse_body(schema, data, context=context)
    return excinfo.value.message


def test_signup_cleans_fields():
    payload = parse_body(SignupRequest, {'name': ' Ann\tLee ', 'email': ' ANN@Example.com', 'password': 'abcdef'})
    assert payload.name == 'Ann Lee'
    assert payload.email == 'ann@example.com'


def test_signup_rejects_malformed_email():
    assert error_of(SignupRequest, {'name': 'A', 'email': 'no-at-sign', 'password': 'abcdef'}) == 'Invalid email address'


def test_pack_size_uses_context_catalog():
    payload = parse_body(PurchasePackRequest, {'packSize': 7, 'userId': 'u'}, context={'pack_sizes': (7,)})
    assert payload.pack_size == 7
    assert error_of(PurchasePackRequest, {'packSize': 10}, context={'pack_sizes': (7,)}) == \
        'Invalid pack size. Must be one of: 7'


def test_pack_size_defaults_to_standard_catalog():
    assert error_of(PurchasePackRequest, {'packSize': 15}) == 'Invalid pack size. Must be one of: 10, 20, 40, 80'


@pytest.mark.parametrize('data, message', [
    ({}, 'Status is required'),
    ({'status': ''}, 'Status is required'),
    ({'status': 'PENDING'}, 'Invalid status. Must be one of: pending, confirmed, delivered, cancelled'),
    ({'status': ['pending']}, 'Invalid status. Must be one of: pending, confirmed, delivered, cancelled'),
])
def test_order_status_messages(data, message):
    assert error_of(OrderStatusUpdate, data) == message


def test_bulk_update_strips_ids():
    payload = parse_body(BulkOrderStatusUpdate, {'orderIds': [' a ', 'b'], 'status': 'cancelled'})
    assert payload.order_ids == ['a', 'b']


def test_bulk_update_rejects_non_string_ids():
    assert error_of(BulkOrderStatusUpdate, {'orderIds': [1], 'status': 'cancelled'}) == 'Order IDs are required'


def test_user_status_requires_real_boolean():
    assert parse_body(UserStatusUpdate, {'is_active': False}).is_active is False
    assert error_of(UserStatusUpdate, {}) == 'is_active is required'
    assert error_of(UserStatusUpdate, {'is_active': None}) == 'is_active is required'
    assert error_of(UserStatusUpdate, {'is_active': 'true'}) == 'is_active must be a boolean value'


def test_role_messages():
    assert error_of(UserRoleUpdate, {'role': ''}) == 'Role is required'
    assert error_of(UserRoleUpdate, {'role': 'owner'}) == 'Invalid role. Must be one of: user, admin'
    assert parse_body(UserRoleUpdate, {'role': 'admin'}).role == 'admin'


def test_template_update_only_reports_sent_fields():
    payload = parse_body(PackTemplateUpdate, {'is_active': False})
    assert payload.provided() == {'is_active': False}


def test_template_update_rejects_bool_size():
    assert error_of(PackTemplateUpdate, {'size': True}) == 'Size must be positive and price must be non-negative'


def test_menu_create_parses_dates_and_items():
    payload = parse_body(MenuCreate, {
        'week_start_date': '2026-01-05',
        'week_end_date': '2026-01-11',
        'items': [{'name': 'Pie', 'price': 4.5}],
    })
    assert payload.week_start_date == date(2026, 1, 5)
    assert payload.items[0].name == 'Pie'
    assert payload.items[0].category == 'Main'


def test_menu_create_rejects_invalid_date():
    message = error_of(MenuCreate, {'week_start_date': 'soon', 'week_end_date': '2026-01-11'})
    assert message.startswith('week_start_date')


def test_menu_item_price_must_be_non_negative():
    assert error_of(MenuItemCreate, {'name': 'Pie', 'price': -1}) == 'Price must be non-negative'


def test_create_order_drops_zero_quantities():
    payload = parse_body(CreateOrderRequest, {'userId': 'u', 'selectedMeals': {'a': 2, 'b': 0}})
    assert payload.selected_meals == {'a': 2}
    assert payload.requested_meals == 2


@pytest.mark.parametrize('data, message', [
    ({'selectedMeals': None}, 'Please select at least one meal'),
    ({'selectedMeals': {'a': 0}}, 'Please select at least one meal'),
    ({'selectedMeals': {'a': -1}}, 'Meal quantities must be whole numbers'),
    ({'selectedMeals': {'a': 1.5}}, 'Meal quantities must be whole numbers'),
    ({'selectedMeals': {'a': 2}, 'totalMeals': 3}, 'Total meals does not match the selected meals'),
])
def test_create_order_messages(data, message):
    assert error_of(CreateOrderRequest, dict(data, userId='u')) == message
