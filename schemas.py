"""
Request Schemas

Pydantic models for every JSON body the API accepts. Validators raise
ValueError with the exact message the client sees; utils.api.parse_body
turns the first one into a 400.
"""

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from constants.validation import (
    VALID_ORDER_STATUSES, VALID_ROLES, DEFAULT_PACK_SIZES, MIN_PASSWORD_LENGTH, MAX_LENGTHS
)
from utils.sanitizer import sanitize_text, sanitize_name, sanitize_email


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _is_int(value):
    # bool is an int subclass; JSON true/false must not pass as a count
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_status(value):
    if _blank(value):
        raise ValueError('Status is required')
    if value not in VALID_ORDER_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(VALID_ORDER_STATUSES)}")
    return value


class RequestSchema(BaseModel):
    """Base for request bodies: unknown keys are ignored."""
    model_config = ConfigDict(extra='ignore')

    def provided(self):
        """Fields the client actually sent, for partial updates."""
        return self.model_dump(exclude_unset=True)


# ============================================
# AUTH
# ============================================

class SignupRequest(RequestSchema):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def require_fields(cls, data):
        if not isinstance(data, dict) or any(
                _blank(data.get(key)) for key in ('name', 'email', 'password')):
            raise ValueError('Name, email, and password are required')
        return data

    @field_validator('name')
    @classmethod
    def clean_name(cls, value):
        return sanitize_name(value, max_length=MAX_LENGTHS['user_name'])

    @field_validator('email')
    @classmethod
    def clean_email(cls, value):
        value = sanitize_email(value, max_length=MAX_LENGTHS['email'])
        if '@' not in value or value.startswith('@') or value.endswith('@'):
            raise ValueError('Invalid email address')
        return value

    @field_validator('password')
    @classmethod
    def password_length(cls, value):
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        return value


class LoginRequest(RequestSchema):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def require_fields(cls, data):
        if not isinstance(data, dict) or _blank(data.get('email')) or _blank(data.get('password')):
            raise ValueError('Email and password are required')
        return data

    @field_validator('email')
    @classmethod
    def clean_email(cls, value):
        return sanitize_email(value)


# ============================================
# PACKS
# ============================================

class PurchasePackRequest(RequestSchema):
    """
    Body of POST /api/packs/purchase.

    The catalog of sizes comes from the validation context
    ({'pack_sizes': ...}) so it follows app config.
    """
    pack_size: Any = Field(default=None, alias='packSize', validate_default=True)
    user_id: Optional[str] = Field(default=None, alias='userId')

    @field_validator('pack_size', mode='before')
    @classmethod
    def pack_size_in_catalog(cls, value, info):
        sizes = tuple((info.context or {}).get('pack_sizes') or DEFAULT_PACK_SIZES)
        if not _is_int(value) or value not in sizes:
            raise ValueError(f"Invalid pack size. Must be one of: {', '.join(str(s) for s in sizes)}")
        return value


class PackTemplateCreate(RequestSchema):
    name: Optional[str] = None
    size: Any = None
    price: Any = None
    description: Optional[str] = ''
    is_active: bool = True

    @model_validator(mode='before')
    @classmethod
    def require_fields(cls, data):
        if not isinstance(data, dict) or _blank(data.get('name')) \
                or data.get('size') is None or data.get('price') is None:
            raise ValueError('Name, size, and price are required')
        size, price = data['size'], data['price']
        if not _is_int(size) or size <= 0 or not _is_number(price) or price < 0:
            raise ValueError('Size must be positive and price must be non-negative')
        return data

    @field_validator('name')
    @classmethod
    def clean_name(cls, value):
        return sanitize_name(value, max_length=MAX_LENGTHS['template_name'])

    @field_validator('description')
    @classmethod
    def clean_description(cls, value):
        return sanitize_text(value or '', max_length=MAX_LENGTHS['description'])


class PackTemplateUpdate(RequestSchema):
    name: Optional[str] = None
    size: Any = None
    price: Any = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode='before')
    @classmethod
    def require_changes(cls, data):
        fields = ('name', 'size', 'price', 'description', 'is_active')
        if not isinstance(data, dict) or not any(key in data for key in fields):
            raise ValueError('No data provided for update')
        if 'name' in data and _blank(data['name']):
            raise ValueError('Name cannot be empty')
        if 'size' in data and (not _is_int(data['size']) or data['size'] <= 0):
            raise ValueError('Size must be positive and price must be non-negative')
        if 'price' in data and (not _is_number(data['price']) or data['price'] < 0):
            raise ValueError('Size must be positive and price must be non-negative')
        return data

    @field_validator('name')
    @classmethod
    def clean_name(cls, value):
        return sanitize_name(value, max_length=MAX_LENGTHS['template_name'])

    @field_validator('description')
    @classmethod
    def clean_description(cls, value):
        return sanitize_text(value or '', max_length=MAX_LENGTHS['description'])


# ============================================
# MENUS
# ============================================

class MenuItemCreate(RequestSchema):
    name: Optional[str] = None
    description: Optional[str] = ''
    price: Any = 0
    category: Optional[str] = 'Main'
    is_available: bool = True

    @model_validator(mode='before')
    @classmethod
    def require_name(cls, data):
        if not isinstance(data, dict) or _blank(data.get('name')):
            raise ValueError('Item name is required')
        return data

    @field_validator('name')
    @classmethod
    def clean_name(cls, value):
        return sanitize_name(value, max_length=MAX_LENGTHS['menu_item_name'])

    @field_validator('description')
    @classmethod
    def clean_description(cls, value):
        return sanitize_text(value or '', max_length=MAX_LENGTHS['description'])

    @field_validator('category')
    @classmethod
    def clean_category(cls, value):
        return sanitize_name(value or '', max_length=MAX_LENGTHS['category']) or 'Main'

    @field_validator('price', mode='before')
    @classmethod
    def price_non_negative(cls, value):
        if value is None:
            return 0
        if not _is_number(value) or value < 0:
            raise ValueError('Price must be non-negative')
        return value


class MenuItemUpdate(RequestSchema):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Any = None
    category: Optional[str] = None
    is_available: Optional[bool] = None

    @model_validator(mode='before')
    @classmethod
    def require_changes(cls, data):
        fields = ('name', 'description', 'price', 'category', 'is_available')
        if not isinstance(data, dict) or not any(key in data for key in fields):
            raise ValueError('No data provided for update')
        if 'name' in data and _blank(data['name']):
            raise ValueError('Item name is required')
        if 'price' in data and (not _is_number(data['price']) or data['price'] < 0):
            raise ValueError('Price must be non-negative')
        return data

    @field_validator('name')
    @classmethod
    def clean_name(cls, value):
        return sanitize_name(value, max_length=MAX_LENGTHS['menu_item_name'])

    @field_validator('description')
    @classmethod
    def clean_description(cls, value):
        return sanitize_text(value or '', max_length=MAX_LENGTHS['description'])

    @field_validator('category')
    @classmethod
    def clean_category(cls, value):
        return sanitize_name(value or '', max_length=MAX_LENGTHS['category']) or 'Main'


class MenuCreate(RequestSchema):
    week_start_date: Optional[date] = None
    week_end_date: Optional[date] = None
    items: List[MenuItemCreate] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def require_dates(cls, data):
        if not isinstance(data, dict) or _blank(data.get('week_start_date')) \
                or _blank(data.get('week_end_date')):
            raise ValueError('Week start date and end date are required')
        return data

    @model_validator(mode='after')
    def end_after_start(self):
        if self.week_end_date < self.week_start_date:
            raise ValueError('Week end date cannot be before week start date')
        return self


class MenuUpdate(RequestSchema):
    """Partial date update; ordering against stored dates is checked by the service."""
    week_start_date: Optional[date] = None
    week_end_date: Optional[date] = None

    @model_validator(mode='before')
    @classmethod
    def require_changes(cls, data):
        fields = ('week_start_date', 'week_end_date')
        if not isinstance(data, dict) or not any(not _blank(data.get(key)) for key in fields):
            raise ValueError('No data provided for update')
        return data


# ============================================
# ORDERS
# ============================================

class OrderStatusUpdate(RequestSchema):
    status: Any = Field(default=None, validate_default=True)

    @field_validator('status', mode='before')
    @classmethod
    def status_member(cls, value):
        return _check_status(value)


class BulkOrderStatusUpdate(RequestSchema):
    order_ids: Any = Field(default=None, alias='orderIds', validate_default=True)
    status: Any = Field(default=None, validate_default=True)

    @field_validator('order_ids', mode='before')
    @classmethod
    def ids_present(cls, value):
        if not isinstance(value, list) or not value \
                or any(not isinstance(item, str) or not item.strip() for item in value):
            raise ValueError('Order IDs are required')
        return [item.strip() for item in value]

    @field_validator('status', mode='before')
    @classmethod
    def status_member(cls, value):
        return _check_status(value)


class CreateOrderRequest(RequestSchema):
    """Body of POST /api/orders/create: {userId, selectedMeals: {menuItemId: quantity}, totalMeals?}."""
    user_id: Optional[str] = Field(default=None, alias='userId')
    selected_meals: Any = Field(default=None, alias='selectedMeals', validate_default=True)
    total_meals: Any = Field(default=None, alias='totalMeals')

    @field_validator('selected_meals', mode='before')
    @classmethod
    def meals_selected(cls, value):
        if not isinstance(value, dict):
            raise ValueError('Please select at least one meal')
        meals = {}
        for item_id, quantity in value.items():
            if not _is_int(quantity) or quantity < 0:
                raise ValueError('Meal quantities must be whole numbers')
            if quantity > 0:
                meals[item_id] = quantity
        if not meals:
            raise ValueError('Please select at least one meal')
        return meals

    @model_validator(mode='after')
    def totals_match(self):
        if self.total_meals is None:
            return self
        if not _is_int(self.total_meals) or self.total_meals <= 0:
            raise ValueError('Please select at least one meal')
        if self.total_meals != self.requested_meals:
            raise ValueError('Total meals does not match the selected meals')
        return self

    @property
    def requested_meals(self):
        return sum(self.selected_meals.values())


# ============================================
# USERS
# ============================================

class UserStatusUpdate(RequestSchema):
    is_active: Any = Field(default=None, validate_default=True)

    @field_validator('is_active', mode='before')
    @classmethod
    def is_boolean(cls, value):
        if value is None:
            raise ValueError('is_active is required')
        if not isinstance(value, bool):
            raise ValueError('is_active must be a boolean value')
        return value


class UserRoleUpdate(RequestSchema):
    role: Any = Field(default=None, validate_default=True)

    @field_validator('role', mode='before')
    @classmethod
    def role_member(cls, value):
        if _blank(value):
            raise ValueError('Role is required')
        if value not in VALID_ROLES:
            raise ValueError(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")
        return value
