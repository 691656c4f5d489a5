from __future__ import annotations

import re

_SENSITIVE_HEADER_RE = re.compile(r"(authorization|apikey|api-key|token|secret|cookie)", re.IGNORECASE)
_ASSIGNMENT_RE = re.compile(r"(?i)\b(\w*(?:token|key|secret))(\s*[=:]\s*)([^\s,;&]+)")
_BEARER_RE = re.compile(r"(?i)(bearer\s+)(\S+)")
_JWT_RE = re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")

MASK = "***"


def redact_string(s: str) -> str:
    """Mask bearer tokens, JWTs and ``key=value`` style secrets in free text."""
    redacted = _BEARER_RE.sub(lambda m: m.group(1) + MASK, s)
    redacted = _ASSIGNMENT_RE.sub(lambda m: m.group(1) + m.group(2) + MASK, redacted)
    return _JWT_RE.sub(MASK, redacted)


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    return {key: MASK if _SENSITIVE_HEADER_RE.search(key) else value for key, value in headers.items()}
