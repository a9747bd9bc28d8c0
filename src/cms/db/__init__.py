"""Database layer (ORM models and bootstrap)."""
