"""
Blogging API — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Targeted handling with the right HTTP status code and a user-facing
       message, without leaking internal details.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) render them as the
       uniform `{success: false, message, errors?}` envelope.

Exception Hierarchy:
    BloggingAPIError (base)
    ├── ValidationError             → 400 Bad Request (field-level errors)
    │   └── InvalidIdentifierError  → 400 Bad Request (malformed post id)
    ├── NotFoundError               → 404 Not Found
    ├── ForbiddenError              → 403 Forbidden (e.g. unpublished post)
    ├── DatabaseError               → 500 Internal Server Error
    └── RateLimitExceededError      → 429 Too Many Requests
"""

from typing import Any, Dict, List, Optional

from starlette.responses import JSONResponse


class BloggingAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "Erro interno do servidor",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BloggingAPIError):
    """
    Raised when client input fails validation.

    Carries one `{"field": ..., "message": ...}` entry per offending field so
    the client can highlight every problem at once.

    Example response:
        {
            "success": false,
            "message": "Dados inválidos",
            "errors": [{"field": "title", "message": "Título deve ter entre 3 e 200 caracteres"}]
        }
    """

    def __init__(
        self,
        message: str = "Dados inválidos",
        errors: Optional[List[Dict[str, str]]] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = list(errors or [])
        if not self.errors and field:
            self.errors.append({"field": field, "message": message})


class InvalidIdentifierError(ValidationError):
    """Raised when a post id is not a well-formed identifier."""

    def __init__(self, value: Any = None):
        super().__init__(
            message="ID inválido",
            field="id",
            context={"value": str(value)},
        )


class NotFoundError(BloggingAPIError):
    """
    Raised when a requested post does not exist.

    The repository returns None for missing records; route handlers turn that
    into this exception so the global handler can answer with 404.
    """

    def __init__(
        self,
        message: str = "Post não encontrado",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ForbiddenError(BloggingAPIError):
    """
    Raised when a record exists but the access policy excludes it.

    Only fetching a draft by id produces this; listings and search simply
    leave drafts out.
    """

    def __init__(
        self,
        message: str = "Post não está publicado",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BloggingAPIError):
    """
    Raised when a store operation fails unexpectedly.

    The message returned to the client is always generic; the original error
    is logged server-side and echoed only outside production.
    """

    def __init__(
        self,
        message: str = "Erro interno do servidor",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BloggingAPIError):
    """Raised when a client exceeds the per-IP request rate limit."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message="Muitas requisições deste IP, tente novamente mais tarde.",
            context=ctx,
        )
        self.retry_after = retry_after


# ══════════════════════════════════════════════════════════════════════════
# Error Envelope
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[Dict[str, str]]] = None,
    error: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Renders the failure envelope: `{success: false, message, errors?, error?}`.

    `errors` holds field-level validation messages; `error` holds the
    underlying error text and is only passed outside production.
    """
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    if error:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)
