"""Repository adapters - Fact store implementations."""

from .memory import InMemoryFactStore
from .postgres import PostgresFactStore, run_migrations

__all__ = ["InMemoryFactStore", "PostgresFactStore", "run_migrations"]
