"""
src/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base for all database models of the tracking server.

Convention:
----------
Table names default to the lowercase class name. Models that need a
different name (devices, locations) override __tablename__ with their own
declared_attr directive.
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models in the application.

    All models must inherit from this class to be registered in
    Base.metadata and discovered by Alembic.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate table name from class name using lowercase convention."""
        return cls.__name__.lower()
