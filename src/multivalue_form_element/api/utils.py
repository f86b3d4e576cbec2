from __future__ import annotations

import time
import uuid
from typing import Any, Optional

from fastapi.responses import JSONResponse


def new_request_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def error_response(
    status_code: int,
    *,
    error: str,
    message: str,
    request_id: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    content = {"ok": False, "error": error, "message": message, "requestId": request_id}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)
