from datetime import datetime
from typing import Any

SENSITIVE_KEYS = {"password", "securityCode", "security_code"}
MAX_LINE_LENGTH = 80


def log(message: str, source: str = "api"):
    timestamp = datetime.now().strftime("%I:%M:%S %p")
    print(f"{timestamp} [{source}] {message}")


def redact(data: Any) -> Any:
    """Copy of ``data`` with passwords and security codes replaced by [REDACTED]."""
    if isinstance(data, list):
        return [redact(item) for item in data]
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if key in SENSITIVE_KEYS else redact(value)
            for key, value in data.items()
        }
    return data


def loggable_body(body: Any) -> Any:
    """Redacted copy of a request body for logs; raw unparsed text is never echoed."""
    if isinstance(body, (str, bytes)):
        return f"<unparsed body, {len(body)} bytes>"
    return redact(body)


def request_line(method: str, path: str, status_code: int, duration_ms: float) -> str:
    line = f"{method} {path} {status_code} in {duration_ms:.0f}ms"
    if len(line) > MAX_LINE_LENGTH:
        line = line[:MAX_LINE_LENGTH - 1] + "…"
    return line
