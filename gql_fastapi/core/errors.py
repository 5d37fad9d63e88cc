from enum import Enum
from typing import Dict, Optional


class ErrorKind(str, Enum):
    """Disposition of a failure raised while serving a GraphQL request."""

    PROTOCOL = "protocol"
    UNCLASSIFIED = "unclassified"


class ConfigurationError(ValueError):
    """Raised at setup time, before any request is served."""


class HttpQueryError(Exception):
    """
    A failure the engine wants rendered directly as an HTTP response.

    Args:
        status_code: HTTP status to answer with
        message: Response body, plain text or a GraphQL JSON error document
        is_graphql_error: True when `message` is already a GraphQL error document
        headers: Extra headers to put on the response
    """

    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        status_code: int,
        message: str,
        is_graphql_error: bool = False,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.is_graphql_error = is_graphql_error
        self.headers = headers

    def __repr__(self):
        return f"HttpQueryError(status_code={self.status_code}, message={self.message!r})"


def error_kind(error: BaseException) -> ErrorKind:
    # Only HttpQueryError is renderable, everything else belongs to the host app
    if isinstance(error, HttpQueryError):
        return error.kind
    return ErrorKind.UNCLASSIFIED
