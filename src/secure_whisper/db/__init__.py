# src/secure_whisper/db/__init__.py
"""Database configuration and utilities."""

from .session import Base, SessionLocal, create_tables, get_db

__all__ = ["Base", "get_db", "SessionLocal", "create_tables"]
