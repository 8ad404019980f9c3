from typing import Any, Dict, Optional


class SeedException(Exception):
    stage_name = "seed"

    def __init__(self, message: str, stage: Optional[str] = None, detail: Any = None) -> None:
        super().__init__(message)
        self.stage = stage or self.stage_name
        self.detail = detail


class StartupConfigError(SeedException):
    """A reference table or the data archive could not be read."""

    stage_name = "startup"


class SchemaError(SeedException):
    """A gazetteer row did not match the 19-column schema."""

    stage_name = "decode"

    def __init__(self, message: str, line_number: Optional[int] = None, detail: Any = None) -> None:
        super().__init__(message, detail=detail)
        self.line_number = line_number


class IndexBootstrapError(SeedException):
    stage_name = "bootstrap"


class BulkOperationError(SeedException):
    """A bulk response reported at least one failed operation."""

    stage_name = "bulk"

    def __init__(self, message: str, diagnostic_path: Optional[str] = None, detail: Any = None) -> None:
        super().__init__(message, detail=detail)
        self.diagnostic_path = diagnostic_path


class SearchTransportError(SeedException):
    stage_name = "transport"


def to_error_payload(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, SeedException):
        payload: Dict[str, Any] = {"message": str(exc), "stage": exc.stage}
        if exc.detail is not None:
            payload["detail"] = exc.detail
        line_number = getattr(exc, "line_number", None)
        if line_number is not None:
            payload["line"] = line_number
        diagnostic_path = getattr(exc, "diagnostic_path", None)
        if diagnostic_path:
            payload["diagnostic"] = diagnostic_path
        return payload
    return {"message": str(exc), "stage": "unknown"}
