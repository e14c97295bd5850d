"""
Activity Tracker
SQLAlchemy models package.

``db`` is the single Flask-SQLAlchemy handle shared by every model module.
Import it from here, never create another instance.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
