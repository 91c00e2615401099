import os
import tempfile
import unittest
from urllib.parse import urlparse

from cachelib import SimpleCache

from inventory import create_app
from inventory.storage import SQLAlchemyStorage, SQLiteStorage


def make_storage(backend, directory):
    path = os.path.join(directory, 'inventory.db')
    if backend == 'sqlalchemy':
        return SQLAlchemyStorage(f'sqlite:///{path}')
    return SQLiteStorage(path)


class AppTestCase(unittest.TestCase):
    """Runs each test against a fresh app, storage file and session cache"""
    backend = 'sqlite'
    config = {}

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp_dir = tmp.name
        self.storage = make_storage(self.backend, self.tmp_dir)
        if self.backend == 'sqlalchemy':
            self.addCleanup(self.storage.engine.dispose)
        self.session_cache = SimpleCache()
        config = {'TESTING': True, 'SECRET_KEY': 'test-secret'}
        config.update(self.config)
        self.app = create_app(config, storage=self.storage, session_cache=self.session_cache)
        self.client = self.app.test_client()

    def register(self, username, password):
        return self.client.post('/register', data={'username': username, 'password': password})

    def login(self, username, password):
        return self.client.post('/login', data={'username': username, 'password': password})

    def logout(self):
        return self.client.get('/logout')

    def assertRedirectsTo(self, response, path):
        self.assertIn(response.status_code, (301, 302, 303))
        self.assertEqual(urlparse(response.headers['Location']).path, path)
