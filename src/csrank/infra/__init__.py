"""
CSRank Infrastructure - System infrastructure components.

This module contains:
- database: SQLAlchemy-backed key-document store
"""

__all__: list[str] = []
