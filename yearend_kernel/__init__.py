"""
Year-End Kernel

Shared foundation of the year-end reconciliation engine:
- Typed exception hierarchy
- Structured JSON logging
- Injectable clock
- SQLAlchemy base, engine and ORM models
- Frozen domain DTOs
"""

__version__ = "0.1.0"
