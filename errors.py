"""
Catalog errors

Each error maps to one HTTP status. Handlers in main.py render them as
JSON bodies of the form {"message": ..., <extra fields>}.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(CatalogError):
    """A required request parameter is missing."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "field": self.field}


class NotFoundError(CatalogError):
    """No product by id, or an empty region-scoped result."""

    status_code = 404


class StoreError(CatalogError):
    """The document store failed to run an operation."""

    status_code = 500

    def __init__(self, message: str, error: str):
        super().__init__(message)
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error}


class ProjectionError(CatalogError):
    """A matched product has no entry for the region it was matched on."""

    status_code = 500
