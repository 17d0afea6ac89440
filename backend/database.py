"""
Database Configuration Module

This module handles the database configuration and connection setup for BizHub Books.
It uses SQLAlchemy for ORM (Object-Relational Mapping) with an embedded SQLite
database by default; any SQLAlchemy URL can be supplied through DATABASE_URL.

The module includes:
- Database connection setup
- Session management
- Base model class definition
- Soft delete filter implementation
- Schema reset used by the debug settings route
"""

import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, with_loader_criteria
from sqlalchemy.ext.declarative import declarative_base

from config import DATABASE_URL

logger = logging.getLogger(__name__)

# SQLite connections are shared between the request threads and the scheduler
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Create SQLAlchemy engine
# The engine is the entry point to the SQLAlchemy ORM
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create SessionLocal class
# SessionLocal is a factory for creating new Session objects
# autocommit=False means we need to explicitly commit transactions
# autoflush=False means we need to explicitly flush changes to the database
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class
# Base is the declarative base class that our ORM models will inherit from
Base = declarative_base()

@event.listens_for(Session, "do_orm_execute")
def add_soft_delete_filter(execute_state):
    """
    Event listener that automatically filters out "soft-deleted" records.

    This function adds a filter to all SELECT queries to exclude records
    where the 'deleted_at' field is not NULL. Queries that need to see
    tombstoned rows (restore) opt out with
    ``.execution_options(include_deleted=True)``.

    Args:
        execute_state: The current execution state of the query
    """
    if (
        execute_state.is_select
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        for entity in execute_state.statement.column_descriptions:
            if hasattr(entity['type'], 'deleted_at'):
                execute_state.statement = execute_state.statement.options(
                    with_loader_criteria(
                        entity['type'],
                        lambda cls: cls.deleted_at.is_(None),
                        include_aliases=True
                    )
                )

# Dependency to get database session
def get_db():
    """
    Dependency function that provides a database session.

    This function creates a new database session for each request and ensures
    that the session is properly closed after the request is completed.

    Yields:
        Session: A SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create every table registered on Base."""
    import models  # noqa: F401  registers all mappers on Base.metadata
    Base.metadata.create_all(bind=bind or engine)


def reset_database(bind=None):
    """Drop and recreate the whole schema. Every row of every user is lost."""
    import models  # noqa: F401
    target = bind or engine
    logger.warning(f"Resetting database schema on {target.url}")
    Base.metadata.drop_all(bind=target)
    Base.metadata.create_all(bind=target)
