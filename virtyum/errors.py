"""
Domain error kinds raised by the repositories and the request handlers.

Each error knows its HTTP status and how to render itself; the handlers
in ``virtyum.error_handlers`` only pick the status and body from here.
"""


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self, include_detail: bool = False) -> dict:
        return {"message": self.message}


class ValidationFailure(CatalogError):
    """One or more field rules rejected the payload."""

    status_code = 400

    def __init__(self, errors: list[str], message: str = "Validation error") -> None:
        super().__init__(message)
        self.errors = list(errors)

    def to_response(self, include_detail: bool = False) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFound(CatalogError):
    status_code = 404

    def __init__(self, message: str, record_id: str) -> None:
        super().__init__(message)
        self.record_id = record_id

    def to_response(self, include_detail: bool = False) -> dict:
        return {"message": self.message, "id": self.record_id}


class InvalidIdentifier(CatalogError):
    """The identifier is not well-formed, as opposed to well-formed but absent."""

    status_code = 400

    def __init__(self, message: str, record_id: str) -> None:
        super().__init__(message)
        self.record_id = record_id

    def to_response(self, include_detail: bool = False) -> dict:
        return {"message": self.message, "id": self.record_id}


class InvalidCategory(CatalogError):
    status_code = 400

    def __init__(self, received: str, valid_categories: tuple[str, ...] | list[str]) -> None:
        super().__init__("Invalid category")
        self.received = received
        self.valid_categories = list(valid_categories)

    def to_response(self, include_detail: bool = False) -> dict:
        return {
            "message": self.message,
            "validCategories": self.valid_categories,
            "received": self.received,
        }


class StoreUnavailable(CatalogError):
    """Any store fault that is not one of the kinds above."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail

    def to_response(self, include_detail: bool = False) -> dict:
        body = {"message": self.message}
        if include_detail and self.detail:
            body["error"] = self.detail
        return body
