"""Schema introspection: capability interface, PostgreSQL backend, context builder."""

from seedwise.introspection.base import SchemaIntrospector, StaticIntrospector
from seedwise.introspection.context import build_context, build_context_sync
from seedwise.introspection.postgres import PostgresIntrospector

__all__ = [
    "PostgresIntrospector",
    "SchemaIntrospector",
    "StaticIntrospector",
    "build_context",
    "build_context_sync",
]
