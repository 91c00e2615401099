import tempfile
import unittest

from helpers import make_storage
from inventory.storage import (DuplicateUsername, SQLAlchemyStorage, SQLiteStorage, StorageError,
                               create_storage, normalize_database_url)


class SQLiteStorageTests(unittest.TestCase):
    backend = 'sqlite'

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.storage = make_storage(self.backend, tmp.name)
        if self.backend == 'sqlalchemy':
            self.addCleanup(self.storage.engine.dispose)
        self.storage.init_schema()

    def test_init_schema_is_repeatable(self):
        self.storage.init_schema()
        self.assertEqual(self.storage.count_users(), 0)
        self.assertEqual(self.storage.count_items(), 0)

    def test_insert_and_find_user(self):
        user = self.storage.insert_user('alice', 'hash')
        self.assertEqual(user.username, 'alice')
        self.assertIsNotNone(user.created_at)
        self.assertEqual(self.storage.find_user_by_username('alice').id, user.id)
        self.assertEqual(self.storage.find_user_by_id(user.id).password_hash, 'hash')
        self.assertIsNone(self.storage.find_user_by_username('bob'))
        self.assertIsNone(self.storage.find_user_by_id(user.id + 100))
        self.assertEqual(self.storage.count_users(), 1)

    def test_duplicate_username(self):
        self.storage.insert_user('alice', 'first')
        with self.assertRaises(DuplicateUsername):
            self.storage.insert_user('alice', 'second')
        self.assertTrue(issubclass(DuplicateUsername, StorageError))
        self.assertEqual(self.storage.find_user_by_username('alice').password_hash, 'first')
        self.assertEqual(self.storage.count_users(), 1)

    def test_item_crud(self):
        item_id = self.storage.insert_item('Widget', sku='W-1', quantity=3, location='Shelf A')
        item = self.storage.get_item(item_id)
        self.assertEqual((item.name, item.sku, item.quantity, item.location, item.notes),
                         ('Widget', 'W-1', 3, 'Shelf A', None))
        self.assertIsNotNone(item.created_at)

        self.storage.update_item(item_id, 'Gadget', quantity=7, notes='fragile')
        item = self.storage.get_item(item_id)
        self.assertEqual((item.name, item.sku, item.quantity, item.location, item.notes),
                         ('Gadget', None, 7, None, 'fragile'))

        self.storage.delete_item(item_id)
        self.assertIsNone(self.storage.get_item(item_id))
        self.assertEqual(self.storage.count_items(), 0)

    def test_missing_ids_are_ignored(self):
        self.storage.update_item(999, 'Nothing', quantity=1)
        self.storage.delete_item(999)
        self.assertIsNone(self.storage.get_item(999))
        self.assertEqual(self.storage.count_items(), 0)

    def test_list_items_newest_first(self):
        for name in ('first', 'second', 'third'):
            self.storage.insert_item(name)
        self.assertEqual([item.name for item in self.storage.list_items()], ['third', 'second', 'first'])
        self.assertEqual(self.storage.count_items(), 3)

    def test_quantity_holds_64_bit_bounds(self):
        high = self.storage.insert_item('High', quantity=2 ** 63 - 1)
        low = self.storage.insert_item('Low', quantity=-2 ** 63)
        self.assertEqual(self.storage.get_item(high).quantity, 2 ** 63 - 1)
        self.assertEqual(self.storage.get_item(low).quantity, -2 ** 63)

    def test_oversized_quantity_is_storage_error(self):
        with self.assertRaises(StorageError):
            self.storage.insert_item('Big', quantity=10 ** 20)
        item_id = self.storage.insert_item('Small', quantity=1)
        with self.assertRaises(StorageError):
            self.storage.update_item(item_id, 'Small', quantity=10 ** 20)
        self.assertEqual(self.storage.get_item(item_id).quantity, 1)
        self.assertEqual(self.storage.count_items(), 1)

    def test_name_is_required_by_schema(self):
        with self.assertRaises(StorageError):
            self.storage.insert_item(None)


class SQLAlchemyStorageTests(SQLiteStorageTests):
    backend = 'sqlalchemy'


class CreateStorageTests(unittest.TestCase):

    def test_embedded_when_no_url(self):
        storage = create_storage({'DATABASE_URL': None, 'DB_FILE': 'data/test.db'})
        self.assertIsInstance(storage, SQLiteStorage)
        self.assertEqual(storage.path, 'data/test.db')

    def test_relational_when_url(self):
        storage = create_storage({'DATABASE_URL': 'sqlite://', 'DB_FILE': 'unused.db'})
        self.addCleanup(storage.engine.dispose)
        self.assertIsInstance(storage, SQLAlchemyStorage)

    def test_postgres_urls_use_psycopg(self):
        self.assertEqual(normalize_database_url('postgres://u@h/db'), 'postgresql+psycopg://u@h/db')
        self.assertEqual(normalize_database_url('postgresql://u@h/db'), 'postgresql+psycopg://u@h/db')
        self.assertEqual(normalize_database_url('mysql+mysqlconnector://u@h/db'),
                         'mysql+mysqlconnector://u@h/db')


if __name__ == '__main__':
    unittest.main()
