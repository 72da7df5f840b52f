"""Static file serving for every request outside the API prefix."""

from tern.middleware.static import CONTENT_TYPES, StaticFiles, content_type_for

__all__ = ["CONTENT_TYPES", "StaticFiles", "content_type_for"]
