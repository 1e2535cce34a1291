"""SQLAlchemy bridge used for PostgreSQL record stores.

Modules
-------
session     Engine factory, PivotSession, SAConnectionBridge
"""
