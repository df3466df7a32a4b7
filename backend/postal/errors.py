from typing import Optional


class PostalError(Exception):
    """Base for every failure surfaced at the request boundary."""

    kind = "PostalError"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.kind


class NotFound(PostalError):
    kind = "NotFound"


class DuplicateKey(PostalError):
    kind = "DuplicateKey"


class ReferenceNotFound(PostalError):
    kind = "ReferenceNotFound"

    def __init__(self, field: str, value: Optional[str] = None):
        label = "Origin" if field == "originId" else "Destination"
        super().__init__(f"{label} Post Office not found: {value}")
        self.field = field
        self.value = value


class HasActiveDependents(PostalError):
    kind = "HasActiveDependents"


class IllegalMutation(PostalError):
    kind = "IllegalMutation"


class InvalidFilter(PostalError):
    kind = "InvalidFilter"


class StoreUnavailable(PostalError):
    kind = "StoreUnavailable"


class CascadeFailure(PostalError):
    kind = "CascadeFailure"
