from __future__ import annotations

from uuid import uuid4

import uvicorn
from fastapi import FastAPI

from atlas.core.logging import configure_logging
from atlas.core.logging.context import log_context
from atlas.core.settings import state_dir

from .routes_bookings import router as bookings_router

app = FastAPI(title="Atlas")
configure_logging(state_dir())
app.include_router(bookings_router, prefix="/bookings", tags=["bookings"])


@app.middleware("http")
async def request_context_middleware(request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    uvicorn.run("atlas.apps.api.main:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
