"""
Record types shared by the storage backends and the Flask views.
"""

import math

from flask_login import UserMixin


ITEM_FIELDS = ('name', 'sku', 'quantity', 'location', 'notes')

# Signed 64-bit range accepted by the INTEGER columns of both backends
QUANTITY_MIN = -2 ** 63
QUANTITY_MAX = 2 ** 63 - 1


class User(UserMixin):
    """
    User class for Flask-Login

    Attributes:
        id (int): User id from database
        username (str): Username of account
        password_hash (str): Salted password hash from database
        created_at: Creation timestamp as returned by the backend
    """
    def __init__(self, user_id, username, password_hash, created_at=None):
        self.id = user_id
        self.username = username
        self.password_hash = password_hash
        self.created_at = created_at

    @classmethod
    def from_row(cls, row):
        return cls(row['id'], row['username'], row['password_hash'], row['created_at'])

    def __repr__(self):
        return f'<User {self.id} {self.username!r}>'


class Item:
    """
    A single inventory record

    Attributes:
        id (int): Item id from database
        name (str): Item name, always present
        sku (str | None): Stock keeping unit
        quantity (int): Units on hand
        location (str | None): Where the item is kept
        notes (str | None): Free text
        created_at: Creation timestamp as returned by the backend
    """
    def __init__(self, item_id, name, sku=None, quantity=0, location=None, notes=None, created_at=None):
        self.id = item_id
        self.name = name
        self.sku = sku
        self.quantity = quantity
        self.location = location
        self.notes = notes
        self.created_at = created_at

    @classmethod
    def from_row(cls, row):
        return cls(row['id'], row['name'], row['sku'], row['quantity'],
                   row['location'], row['notes'], row['created_at'])

    def __repr__(self):
        return f'<Item {self.id} {self.name!r} x{self.quantity}>'


def parse_quantity(value):
    """
    Coerce a submitted quantity to an integer

    Integer strings are parsed as-is, decimal strings are truncated toward
    zero. Anything non-numeric or outside the signed 64-bit range becomes 0.

    Args:
        value (str | int | None): Raw form value

    Returns:
        int: The quantity to store
    """
    if value is None:
        return 0
    text = str(value).strip()
    try:
        quantity = int(text)
    except ValueError:
        try:
            number = float(text)
        except ValueError:
            return 0
        if math.isnan(number) or math.isinf(number):
            return 0
        quantity = int(number)
    if not QUANTITY_MIN <= quantity <= QUANTITY_MAX:
        return 0
    return quantity


def clean_item_fields(form):
    """
    Build the mutable item fields from a submitted form

    Optional text fields left blank are stored as None.

    Returns:
        dict: name, sku, quantity, location and notes
    """
    fields = {}
    for key in ('name', 'sku', 'location', 'notes'):
        value = (form.get(key) or '').strip()
        fields[key] = value or None
    fields['quantity'] = parse_quantity(form.get('quantity'))
    return fields
