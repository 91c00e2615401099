"""
auth.py
-------
Account registration, credential checks and session handling for the
inventory views. Sessions are managed by Flask-Login on top of the
server-side session store configured in the app factory.
"""

from flask import current_app, session
from flask_login import LoginManager, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from .storage import DuplicateUsername, StorageError


INVALID_CREDENTIALS = 'Invalid credentials'

login_manager = LoginManager()
login_manager.login_view = 'login'


class AuthError(Exception):
    """Base class for failures shown to the user on the login and register forms"""


class RegistrationError(AuthError):
    pass


class InvalidCredentials(AuthError):
    def __init__(self):
        super().__init__(INVALID_CREDENTIALS)


def get_storage():
    return current_app.extensions['inventory_storage']


@login_manager.user_loader
def load_user(user_id):
    """
    Flask-login user loader

    Args:
        user_id (str): Takes the ID of a user as a string

    Returns:
        User | None: The stored user, or None if it no longer exists
    """
    return get_storage().find_user_by_id(int(user_id))


def register(storage, username, password):
    """
    Create a new account with a salted password hash

    Args:
        storage (Storage): Backend holding the users table
        username (str): Requested username, surrounding whitespace is removed
        password (str): Plain text password

    Returns:
        User: The stored user

    Raises:
        RegistrationError: Missing fields or a username that is already taken
    """
    username = (username or '').strip()
    if not username or not password:
        raise RegistrationError('Username and password are required')

    password_hash = generate_password_hash(password)
    try:
        user = storage.insert_user(username, password_hash)
    except DuplicateUsername:
        raise RegistrationError('Username taken')
    current_app.logger.info('Registered user %s', user.username)
    return user


def authenticate(storage, username, password):
    """
    Check a username and password against the stored hash

    Every failure raises the same InvalidCredentials error, whether the user
    is missing, the password is wrong or the lookup itself failed.

    Returns:
        User: The matching user
    """
    try:
        user = storage.find_user_by_username((username or '').strip())
    except StorageError:
        current_app.logger.exception('User lookup failed for %s', username)
        raise InvalidCredentials()
    if user is None or not check_password_hash(user.password_hash, password or ''):
        current_app.logger.info('Failed login for %s', username)
        raise InvalidCredentials()
    return user


def open_session(user):
    """Log the user in under a fresh session id"""
    current_app.session_interface.regenerate(session)
    login_user(user)
    session['username'] = user.username


def close_session():
    """Drop the current login and its server-side session entry"""
    logout_user()
    session.clear()


def bootstrap_admin(storage, username, password):
    """
    Create a first account when the users table is empty

    Does nothing when no password is configured or a user already exists.

    Returns:
        User | None: The created account
    """
    if not password or storage.count_users() > 0:
        return None
    user = storage.insert_user(username, generate_password_hash(password))
    current_app.logger.warning('Created bootstrap account %r; change its password or remove '
                               'BOOTSTRAP_ADMIN_PASSWORD from the environment', username)
    return user
