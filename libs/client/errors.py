"""Error type raised by ``ApiClient`` for every failed call."""

import enum
from typing import Any, Optional


class ApiErrorType(str, enum.Enum):
    NETWORK = "network"
    HTTP = "http"
    INVALID_RESPONSE = "invalid-response"


class ApiError(Exception):
    """
    A failed API call.

    ``type`` says which stage failed so callers can branch without parsing
    messages; ``server_message`` and ``code`` carry the server's structured
    error body when it sent one.
    """

    def __init__(
        self,
        message: str,
        *,
        type: ApiErrorType,
        endpoint: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        server_body: Optional[str] = None,
        server_message: Optional[str] = None,
        code: Optional[str] = None,
        payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.type = type
        self.endpoint = endpoint
        self.status = status
        self.status_text = status_text
        self.server_body = server_body
        self.server_message = server_message
        self.code = code
        self.payload = payload

    def __repr__(self):
        return f"<ApiError {self.type.value} {self.status} {self.endpoint}>"
