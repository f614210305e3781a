# kezekshi_dashboard/core/errors.py
from typing import Any, Dict, Optional

GENERIC_USER_ERROR = "Ошибка. Попробуйте еще раз"

class KezekshiAPIError(Exception):
    """Non-2xx or unreadable reply from the upstream Kezekshi API."""

    def __init__(self, status: int, detail: Any = None, payload: Optional[Dict[str, Any]] = None, raw: str | None = None):
        self.status = status
        self.detail = detail
        self.payload = payload or {}
        self.raw = raw
        super().__init__(f"Kezekshi API error {status}: {detail}")

    @classmethod
    def from_payload(cls, status: int, payload: Any) -> "KezekshiAPIError":
        if isinstance(payload, dict):
            return cls(status, payload.get("detail") or payload.get("message"), payload)
        return cls(status, payload)

class ValidationError(Exception):
    """Local input rejected before reaching the upstream API."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

def user_error_message(error: Any) -> str:
    if error is None:
        return GENERIC_USER_ERROR
    detail = getattr(error, "detail", None)
    if detail is None and isinstance(error, dict):
        detail = error.get("detail")
    if isinstance(detail, str):
        if "уже зарегистрирован" in detail:
            return "Пользователь уже существует"
        if "Неверный код" in detail:
            return "Неверный номер или пароль"
        if "найден в" in detail:
            return "Пользователь найден в системе"
    return GENERIC_USER_ERROR
