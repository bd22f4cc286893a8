# ./mofguard/core/errors.py
from __future__ import annotations

from typing import Any

__all__ = [
    "MonitorError",
    "ConfigurationError",
    "InvalidFlowRateError",
    "to_problem",
]


class MonitorError(Exception):
    """모니터 공통 예외: code / message / detail 을 가진다."""

    code: str = "MONITOR_ERROR"

    def __init__(self, message: str, *, detail: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(MonitorError):
    """잘못된 구성 (예: 0 이하의 흡착 용량). 시작 시점에 즉시 실패."""

    code = "INVALID_CONFIG"


class InvalidFlowRateError(MonitorError):
    """숫자가 아니거나 음수/무한대인 유량 입력."""

    code = "INVALID_INPUT"


def to_problem(exc: MonitorError) -> dict[str, Any]:
    """MonitorError -> 공통 에러 payload ({code, message, detail?})."""
    payload: dict[str, Any] = {
        "code": exc.code,
        "message": exc.message,
    }
    if exc.detail is not None:
        payload["detail"] = exc.detail
    return payload
