"""
Response envelope normalisation for the business API.

Every call returns an ApiResult. The remote API answers with
``{success, data?, error?, message?}`` where ``error`` is either a plain
string or an object carrying ``message`` (and sometimes ``code``). Both
shapes are folded into ErrorDetail here, once, so pages never inspect raw
envelopes.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


# Error taxonomy
NOT_CONFIGURED = "not_configured"
NETWORK_ERROR = "network_error"
HTTP_ERROR = "http_error"
INVALID_JSON = "invalid_json"
APPLICATION_ERROR = "application_error"

INVALID_JSON_MESSAGE = "レスポンスがJSONではありません"
UNKNOWN_ERROR_MESSAGE = "不明なエラー"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error: machine code plus user-facing message."""
    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ApiResult:
    """Tagged result of one API round trip."""
    success: bool
    data: Any = None
    error: Optional[ErrorDetail] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ApiResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, code: str, message: str) -> "ApiResult":
        return cls(success=False, error=ErrorDetail(code=code, message=message))

    @property
    def error_message(self) -> str:
        """Message to show the user; empty string on success."""
        if self.success:
            return ""
        return self.error.message if self.error else UNKNOWN_ERROR_MESSAGE

    def get(self, key: str, default: Any = None) -> Any:
        """Read a key from a dict payload, tolerating missing data."""
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default


def unwrap_error(error: Any, fallback: Optional[str] = None) -> str:
    """
    Extract a display string from either legacy error shape.

    ``"no permission"`` and ``{"message": "no permission"}`` both give
    ``"no permission"``.
    """
    if isinstance(error, dict):
        msg = error.get("message") or error.get("error")
        if msg:
            return str(msg)
        return fallback or UNKNOWN_ERROR_MESSAGE
    if error is None or error == "":
        return fallback or UNKNOWN_ERROR_MESSAGE
    return str(error)


def error_code(error: Any) -> str:
    if isinstance(error, dict) and error.get("code"):
        return str(error["code"])
    return APPLICATION_ERROR


def from_envelope(payload: Any) -> ApiResult:
    """
    Convert a decoded JSON body into an ApiResult.

    The envelope's own ``success`` flag decides the outcome; a body that is
    not an object is treated as a protocol error.
    """
    if not isinstance(payload, dict):
        return ApiResult.fail(INVALID_JSON, INVALID_JSON_MESSAGE)

    message = payload.get("message")
    if payload.get("success") is True:
        return ApiResult.ok(payload.get("data"), message=message)

    error = payload.get("error")
    return ApiResult(
        success=False,
        data=payload.get("data"),
        error=ErrorDetail(code=error_code(error), message=unwrap_error(error, fallback=message)),
        message=message,
    )


def to_dict(result: ApiResult) -> Dict[str, Any]:
    """Serialise back to the wire envelope shape (used by the CLI check)."""
    out: Dict[str, Any] = {"success": result.success}
    if result.data is not None:
        out["data"] = result.data
    if result.error is not None:
        out["error"] = {"code": result.error.code, "message": result.error.message}
    if result.message:
        out["message"] = result.message
    return out
