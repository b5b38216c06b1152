"""
Database Configuration

FLOW OVERVIEW
- Provides the global SQLAlchemy instance `db` used by every ORM model and by the
  dynamically created project file tables (see file_table.py).
- Initialized in app factory (autoai/__init__.py) with app context.
"""

from flask_sqlalchemy import SQLAlchemy

# Create SQLAlchemy instance
db = SQLAlchemy()
