from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


# PUBLIC_INTERFACE
def error_envelope(message: str, details: Any = None, **extra: Any) -> Dict[str, Any]:
    """
    Build the standard failure envelope.

    Args:
        message: Human-readable description of the failure.
        details: Optional extra information; omitted from the body when None.
        **extra: Additional top-level keys (e.g. `path` for unmatched routes).

    Returns:
        Dict with keys: success (always False), message, optional details, extras.
    """
    body: Dict[str, Any] = {"success": False, "message": message}
    if details is not None:
        body["details"] = details
    body.update(extra)
    return body


def error_response(status_code: int, message: str, details: Optional[Any] = None, **extra: Any) -> JSONResponse:
    """JSONResponse carrying an error envelope."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(message, details, **extra)),
    )
