"""Persistence: SQLAlchemy async engine, models, repositories, Alembic migrations."""
