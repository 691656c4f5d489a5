from __future__ import annotations

from fastapi import Request

from atlas.core.auth.session import Session

AUTH_HEADER = "Authorization"
USER_EMAIL_HEADER = "X-ATLAS-USER-EMAIL"


def extract_bearer_token(request: Request) -> str | None:
    raw = request.headers.get(AUTH_HEADER, "").strip()
    scheme, _, token = raw.partition(" ")
    if scheme.casefold() != "bearer" or not token.strip():
        return None
    return token.strip()


def session_from_request(request: Request) -> Session | None:
    token = extract_bearer_token(request)
    if token is None:
        return None
    return Session(access_token=token, user_email=request.headers.get(USER_EMAIL_HEADER) or None)
