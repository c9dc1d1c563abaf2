"""
extensions.py — Flask extension singletons.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in tablespot/__init__.py.
    3. Import `db` from here wherever needed.

Do not pass the app object directly to SQLAlchemy() at import time — that
would prevent running tests with a separate test app instance.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
