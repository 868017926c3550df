"""
HTTP-layer errors for the plan service.

The plan engine never raises for bad inputs (it clamps and records); only
the router raises these, and main.py renders them with ``body()``:

    {"error": {"code": "PLAN_REJECTED", "message": "...", "reasons": [...]}}
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any, List


class APIException(HTTPException):
    """An HTTPException that carries a machine-readable error code."""

    def __init__(self, status_code: int, detail: Any, error_code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code or "ERROR"

    def body(self) -> Dict[str, Any]:
        return {"error": {"code": self.error_code, "message": self.detail}}


class ValidationError(APIException):
    """Request content the router cannot use (e.g. a malformed skeleton)."""

    def __init__(self, detail: str, field: Optional[str] = None):
        code = "VALIDATION_ERROR" if not field else f"VALIDATION_ERROR_{field.upper()}"
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail, code)
        self.field = field


class PlanRejectedError(APIException):
    """
    Hard pre-generation errors: timeline too short, identical race dates,
    implausible starting volume.

    Raised only when the caller has not set accept_warnings.
    """

    def __init__(self, reasons: List[str]):
        self.reasons = list(reasons)
        message = "; ".join(self.reasons) if self.reasons else "Plan rejected"
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, message, "PLAN_REJECTED")

    def body(self) -> Dict[str, Any]:
        content = super().body()
        content["error"]["reasons"] = self.reasons
        return content
