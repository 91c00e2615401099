"""
Flask Inventory Tracking Application

The application is a web based inventory tracker built with Flask

Features include:
    User registration and login with salted password hashes
    Server-side sessions that expire after a fixed lifetime
    Inventory management (list, create, edit, delete)
    Item count dashboard
    Exporting of items via XML and/or XLSX files
    Embedded (SQLite) or relational server (SQLAlchemy URL) storage
"""


import logging
import os

from cachelib import FileSystemCache
from flask import Flask, flash, redirect, render_template, request, send_file, url_for
from flask_login import login_required
from flask_session import Session

from .auth import (AuthError, authenticate, bootstrap_admin, close_session, get_storage, login_manager,
                   open_session, register)
from .config import Config
from .export import XLSX_MIMETYPE, items_to_xlsx, items_to_xml
from .models import clean_item_fields
from .storage import StorageError, create_storage


TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "..", "templates")


def init_database(config=None):
    """
    Create the user and item tables for the configured backend if they have not been created

    Args:
        config (dict | None): Overrides for the environment configuration

    Returns:
        Storage: The initialized backend
    """
    settings = {key: getattr(Config, key) for key in dir(Config) if key.isupper()}
    settings.update(config or {})
    storage = create_storage(settings)
    storage.init_schema()
    return storage


def create_app(config=None, storage=None, session_cache=None):
    """
    Build the Flask application

    Args:
        config (dict | None): Overrides applied on top of Config
        storage (Storage | None): Backend to use instead of the configured one
        session_cache (cachelib.BaseCache | None): Keyed store holding server-side sessions

    Returns:
        Flask: The configured application
    """
    app = Flask(__name__, template_folder=TEMPLATE_DIR)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    if session_cache is None:
        session_cache = FileSystemCache(app.config['SESSION_DIR'], threshold=500)
    app.config['SESSION_TYPE'] = 'cachelib'
    app.config['SESSION_CACHELIB'] = session_cache
    Session(app)
    login_manager.init_app(app)

    if storage is None:
        storage = create_storage(app.config)
    app.extensions['inventory_storage'] = storage

    with app.app_context():
        storage.init_schema()
        app.logger.info('Using %s storage', storage.name)
        bootstrap_admin(storage, app.config['BOOTSTRAP_ADMIN_USERNAME'], app.config['BOOTSTRAP_ADMIN_PASSWORD'])

    register_routes(app)
    return app


def register_routes(app):

    @app.errorhandler(StorageError)
    def storage_error(error):
        app.logger.exception('Storage failure on %s %s', request.method, request.path)
        return render_template('error.html', message='Server error'), 500

    @app.route('/')
    def index():
        """
        Send visitors to the dashboard

        Returns:
            Response: Redirect to the dashboard
        """
        return redirect(url_for('dashboard'))

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        """
        Handle user login

        GET:
             Renders the login page

        POST:
            Checks the submitted credentials and opens a session if they match

        Returns:
            str | Response: Render template or redirect to the dashboard
        """
        if request.method == 'POST':
            username = request.form.get('username', '')
            try:
                user = authenticate(get_storage(), username, request.form.get('password', ''))
            except AuthError as e:
                return render_template('login.html', error=str(e), username=username)
            open_session(user)
            app.logger.info('User %s logged in', user.username)
            return redirect(url_for('dashboard'))
        return render_template('login.html', error=None)

    @app.route('/register', methods=['GET', 'POST'])
    def register_account():
        """
        Handle user registration

        GET:
            Render the registration form
        POST:
            Store a new user with a hashed password and log them in right away

        Returns:
            str | Response: Rendered template or redirect to the dashboard
        """
        if request.method == 'POST':
            username = request.form.get('username', '')
            try:
                user = register(get_storage(), username, request.form.get('password', ''))
            except AuthError as e:
                return render_template('register.html', error=str(e), username=username)
            open_session(user)
            return redirect(url_for('dashboard'))
        return render_template('register.html', error=None)

    @app.route('/logout')
    def logout():
        """
        Logout the current user, if any

        Returns:
            Response: Redirect to login page
        """
        close_session()
        return redirect(url_for('login'))

    @app.route('/dashboard')
    @login_required
    def dashboard():
        """
        Display the total number of inventory items

        Returns:
            str: Rendered dashboard template
        """
        return render_template('dashboard.html', total=get_storage().count_items())

    @app.route('/items')
    @login_required
    def list_items():
        """
        Display every inventory item, newest first

        Returns:
            str: Rendered list template
        """
        return render_template('inventory_list.html', items=get_storage().list_items())

    @app.route('/items/new', methods=['GET', 'POST'])
    @login_required
    def create_item():
        """
        Add an item to the inventory

        GET:
            Render the empty item form
        POST:
            Insert the item, re-rendering the form if the name is missing

        Returns:
            str | Response: Rendered template or redirect to the item list
        """
        action = url_for('create_item')
        if request.method == 'POST':
            fields = clean_item_fields(request.form)
            if not fields['name']:
                return render_template('inventory_form.html', item=fields, action=action,
                                       error='Name is required')
            get_storage().insert_item(**fields)
            return redirect(url_for('list_items'))
        return render_template('inventory_form.html', item=None, action=action, error=None)

    @app.route('/items/<int:item_id>/edit', methods=['GET', 'POST'])
    @login_required
    def edit_item(item_id):
        """
        Edit an existing inventory item

        Args:
            item_id (int): id of the item to edit

        GET:
            Render the form filled with the stored item, or go back to the list if it does not exist
        POST:
            Overwrite every field of the item

        Returns:
            str | Response: Rendered template or redirect to the item list
        """
        storage = get_storage()
        action = url_for('edit_item', item_id=item_id)
        if request.method == 'POST':
            fields = clean_item_fields(request.form)
            if not fields['name']:
                fields['id'] = item_id
                return render_template('inventory_form.html', item=fields, action=action,
                                       error='Name is required')
            storage.update_item(item_id, **fields)
            return redirect(url_for('list_items'))

        item = storage.get_item(item_id)
        if item is None:
            flash('Item not found')
            return redirect(url_for('list_items'))
        return render_template('inventory_form.html', item=item, action=action, error=None)

    @app.route('/items/<int:item_id>/delete', methods=['POST'])
    @login_required
    def delete_item(item_id):
        """
        Delete an inventory item

        Args:
            item_id (int): id of the item to delete, missing ids are ignored

        Returns:
            Response: Redirect to the item list
        """
        get_storage().delete_item(item_id)
        return redirect(url_for('list_items'))

    # Takes the item table and downloads a xml file to the users computer
    @app.route('/items/export.xml')
    @login_required
    def export_xml():
        """
        Export the current inventory to an XML file

        Returns:
            Response: XML file download
        """
        output_xml = items_to_xml(get_storage().list_items())
        return send_file(output_xml, mimetype='application/xml', as_attachment=True,
                         download_name='inventory.xml')

    @app.route('/items/export.xlsx')
    @login_required
    def export_xlsx():
        """
        Export the current inventory to an XLSX file

        Returns:
             Response: XLSX file download
        """
        output_xlsx = items_to_xlsx(get_storage().list_items())
        return send_file(output_xlsx, mimetype=XLSX_MIMETYPE, as_attachment=True,
                         download_name='inventory.xlsx')


def main():
    logging.basicConfig(level=Config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app = create_app()
    app.run(port=app.config['PORT'])


if __name__ == '__main__':
    main()
