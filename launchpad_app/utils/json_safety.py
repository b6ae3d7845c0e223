import json
import math
from typing import Any

from fastapi.responses import JSONResponse

# Largest integer a JavaScript Number represents exactly.
MAX_SAFE_INTEGER = 2**53 - 1


class SafeJSONResponse(JSONResponse):
    """JSONResponse that keeps base-unit amounts exact and NaN/Infinity out of the payload."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            sanitize_amounts(content),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")


def sanitize_amounts(obj):
    """Recursively emit unsafe integers as decimal strings and NaN/Infinity as None."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        if abs(obj) > MAX_SAFE_INTEGER:
            return str(obj)
        return obj
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, dict):
        return {k: sanitize_amounts(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_amounts(v) for v in obj]
    return obj
