# backend/courtfile/db/__init__.py

"""
Database Module

Contains SQLAlchemy models, Pydantic schemas, and database configuration.
"""

from courtfile.db.database import Base, engine, SessionLocal, get_db, init_db
from courtfile.db import models, schemas

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'get_db',
    'init_db',
    'models',
    'schemas'
]
