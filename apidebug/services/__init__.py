"""Service layer exports."""

from . import auth_session, catalog_store, content_type, executor, persistence, request_builder

__all__ = ["auth_session", "catalog_store", "content_type", "executor", "persistence", "request_builder"]
