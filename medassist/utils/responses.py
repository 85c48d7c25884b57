# medassist/utils/responses.py

from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_response(success: bool, data=None, message: str = ""):
    return {
        "success": success,
        "data": data,
        "message": message,
    }

def format_error_response(exc, status_code=500, detail=None):
    return {
        "success": False,
        "error": {
            "type": exc.__class__.__name__,
            "detail": detail if detail is not None else str(exc),
            "status_code": status_code
        }
    }

def format_validation_errors(errors) -> dict:
    """Group pydantic validation errors by field name."""
    fields = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        fields.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return fields

def now_timestamp() -> str:
    return datetime.utcnow().strftime(TIMESTAMP_FORMAT)
