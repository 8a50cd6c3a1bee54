"""Relational persistence: engine/session helpers, ORM models, SQL store."""
