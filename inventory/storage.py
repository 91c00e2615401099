"""
Storage backends for users and inventory items

Two interchangeable implementations of the same interface:
    SQLiteStorage       embedded database file through sqlite3
    SQLAlchemyStorage   relational server through a SQLAlchemy URL

Every method either returns its result or raises StorageError.
"""

import os
import sqlite3
from contextlib import contextmanager

from sqlalchemy import (BigInteger, Column, DateTime, Integer, MetaData, String, Table, Text, create_engine,
                        delete, func, insert, select, update)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .models import Item, User


SCHEMA_PATH = os.path.join(os.path.dirname(__file__), 'inventory_schema.sql')


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation"""


class DuplicateUsername(StorageError):
    """Raised when inserting a user whose username is already stored"""


class Storage:
    """
    Interface shared by the storage backends

    Item methods take and return the fields listed in models.ITEM_FIELDS.
    """
    name = 'storage'

    def init_schema(self):
        raise NotImplementedError

    def find_user_by_username(self, username):
        """Return the matching User or None"""
        raise NotImplementedError

    def find_user_by_id(self, user_id):
        """Return the matching User or None"""
        raise NotImplementedError

    def insert_user(self, username, password_hash):
        """Store a new user and return it, raising DuplicateUsername if the name is taken"""
        raise NotImplementedError

    def count_users(self):
        raise NotImplementedError

    def list_items(self):
        """Return every Item, newest first"""
        raise NotImplementedError

    def get_item(self, item_id):
        """Return the matching Item or None"""
        raise NotImplementedError

    def insert_item(self, name, sku=None, quantity=0, location=None, notes=None):
        """Store a new item and return its id"""
        raise NotImplementedError

    def update_item(self, item_id, name, sku=None, quantity=0, location=None, notes=None):
        """Overwrite every mutable field of an item. Missing ids are ignored."""
        raise NotImplementedError

    def delete_item(self, item_id):
        """Delete an item. Missing ids are ignored."""
        raise NotImplementedError

    def count_items(self):
        raise NotImplementedError


class SQLiteStorage(Storage):
    """
    Embedded backend keeping both tables in a single SQLite file

    A connection is opened per operation and closed afterwards.
    """
    name = 'sqlite'

    def __init__(self, path):
        self.path = path

    @contextmanager
    def _connect(self):
        try:
            connection = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise StorageError(f'cannot open {self.path}: {e}') from e
        connection.row_factory = sqlite3.Row
        try:
            yield connection
            connection.commit()
        except sqlite3.IntegrityError:
            connection.rollback()
            raise
        except (sqlite3.Error, OverflowError) as e:
            connection.rollback()
            raise StorageError(str(e)) from e
        finally:
            connection.close()

    def init_schema(self):
        """
        Create the user and item tables from 'inventory_schema.sql' if they have not been created
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(SCHEMA_PATH) as f:
            script = f.read()
        with self._connect() as connection:
            connection.executescript(script)

    def find_user_by_username(self, username):
        with self._connect() as connection:
            row = connection.execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()
        return User.from_row(row) if row else None

    def find_user_by_id(self, user_id):
        with self._connect() as connection:
            row = connection.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
        return User.from_row(row) if row else None

    def insert_user(self, username, password_hash):
        try:
            with self._connect() as connection:
                cursor = connection.execute('INSERT INTO users (username, password_hash) VALUES (?, ?)',
                                            (username, password_hash))
                row = connection.execute('SELECT * FROM users WHERE id = ?', (cursor.lastrowid,)).fetchone()
        except sqlite3.IntegrityError as e:
            raise DuplicateUsername(username) from e
        return User.from_row(row)

    def count_users(self):
        with self._connect() as connection:
            return connection.execute('SELECT COUNT(*) FROM users').fetchone()[0]

    def list_items(self):
        with self._connect() as connection:
            rows = connection.execute('SELECT * FROM items ORDER BY created_at DESC, id DESC').fetchall()
        return [Item.from_row(row) for row in rows]

    def get_item(self, item_id):
        with self._connect() as connection:
            row = connection.execute('SELECT * FROM items WHERE id = ?', (item_id,)).fetchone()
        return Item.from_row(row) if row else None

    def insert_item(self, name, sku=None, quantity=0, location=None, notes=None):
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    'INSERT INTO items (name, sku, quantity, location, notes) VALUES (?, ?, ?, ?, ?)',
                    (name, sku, quantity, location, notes))
                return cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise StorageError(str(e)) from e

    def update_item(self, item_id, name, sku=None, quantity=0, location=None, notes=None):
        try:
            with self._connect() as connection:
                connection.execute(
                    'UPDATE items SET name = ?, sku = ?, quantity = ?, location = ?, notes = ? WHERE id = ?',
                    (name, sku, quantity, location, notes, item_id))
        except sqlite3.IntegrityError as e:
            raise StorageError(str(e)) from e

    def delete_item(self, item_id):
        with self._connect() as connection:
            connection.execute('DELETE FROM items WHERE id = ?', (item_id,))

    def count_items(self):
        with self._connect() as connection:
            return connection.execute('SELECT COUNT(*) FROM items').fetchone()[0]


metadata = MetaData()

users_table = Table(
    'users', metadata,
    Column('id', Integer, primary_key=True),
    Column('username', String(150), unique=True, nullable=False),
    Column('password_hash', String(255), nullable=False),
    Column('created_at', DateTime, server_default=func.now()),
)

items_table = Table(
    'items', metadata,
    Column('id', Integer, primary_key=True),
    Column('name', String(255), nullable=False),
    Column('sku', String(100)),
    Column('quantity', BigInteger, nullable=False, server_default='0'),
    Column('location', String(255)),
    Column('notes', Text),
    Column('created_at', DateTime, server_default=func.now()),
)


class SQLAlchemyStorage(Storage):
    """
    Relational server backend (MySQL, PostgreSQL, ...) addressed by a SQLAlchemy URL

    Each operation runs in its own engine.begin() block on a pooled connection.
    """
    name = 'sqlalchemy'

    def __init__(self, url, **engine_options):
        self.url = url
        self.engine = create_engine(url, **engine_options)

    @contextmanager
    def _begin(self):
        try:
            with self.engine.begin() as connection:
                yield connection
        except IntegrityError:
            raise
        except (SQLAlchemyError, OverflowError) as e:
            raise StorageError(str(e)) from e

    def init_schema(self):
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    def _find_user(self, clause):
        with self._begin() as connection:
            row = connection.execute(select(users_table).where(clause)).mappings().first()
        return User.from_row(row) if row else None

    def find_user_by_username(self, username):
        return self._find_user(users_table.c.username == username)

    def find_user_by_id(self, user_id):
        return self._find_user(users_table.c.id == user_id)

    def insert_user(self, username, password_hash):
        try:
            with self._begin() as connection:
                result = connection.execute(insert(users_table).values(username=username,
                                                                       password_hash=password_hash))
                user_id = result.inserted_primary_key[0]
                row = connection.execute(select(users_table).where(users_table.c.id == user_id)).mappings().one()
        except IntegrityError as e:
            raise DuplicateUsername(username) from e
        return User.from_row(row)

    def count_users(self):
        with self._begin() as connection:
            return connection.execute(select(func.count()).select_from(users_table)).scalar_one()

    def list_items(self):
        query = select(items_table).order_by(items_table.c.created_at.desc(), items_table.c.id.desc())
        with self._begin() as connection:
            rows = connection.execute(query).mappings().all()
        return [Item.from_row(row) for row in rows]

    def get_item(self, item_id):
        with self._begin() as connection:
            row = connection.execute(select(items_table).where(items_table.c.id == item_id)).mappings().first()
        return Item.from_row(row) if row else None

    def insert_item(self, name, sku=None, quantity=0, location=None, notes=None):
        try:
            with self._begin() as connection:
                result = connection.execute(insert(items_table).values(
                    name=name, sku=sku, quantity=quantity, location=location, notes=notes))
                return result.inserted_primary_key[0]
        except IntegrityError as e:
            raise StorageError(str(e)) from e

    def update_item(self, item_id, name, sku=None, quantity=0, location=None, notes=None):
        try:
            with self._begin() as connection:
                connection.execute(update(items_table).where(items_table.c.id == item_id).values(
                    name=name, sku=sku, quantity=quantity, location=location, notes=notes))
        except IntegrityError as e:
            raise StorageError(str(e)) from e

    def delete_item(self, item_id):
        with self._begin() as connection:
            connection.execute(delete(items_table).where(items_table.c.id == item_id))

    def count_items(self):
        with self._begin() as connection:
            return connection.execute(select(func.count()).select_from(items_table)).scalar_one()


def normalize_database_url(url):
    """
    Point bare postgres URLs at the psycopg driver

    Args:
        url (str): Database URL from the environment

    Returns:
        str: URL usable by create_engine
    """
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql+psycopg://', 1)
    if url.startswith('postgresql://'):
        return url.replace('postgresql://', 'postgresql+psycopg://', 1)
    return url


def create_storage(config):
    """
    Pick the storage backend for a configuration mapping

    DATABASE_URL selects the relational backend, otherwise DB_FILE is opened with sqlite3.
    """
    url = config.get('DATABASE_URL')
    if url:
        return SQLAlchemyStorage(normalize_database_url(url), pool_pre_ping=True)
    return SQLiteStorage(config['DB_FILE'])
