"""Rate limiting for document uploads using SlowAPI."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address


def _uploader_key(request: Request) -> str:
    # Uploaders behind one NAT share an address; prefer the acting employee.
    actor = request.headers.get("X-Actor-ID")
    if actor:
        return f"actor:{actor}"
    return get_remote_address(request)


limiter = Limiter(key_func=_uploader_key)


def init_rate_limiter(app: FastAPI) -> None:
    """Attach the rate limiter and exception handler to the FastAPI app."""

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    async def rate_limit_exceeded_handler(request, exc):  # type: ignore[unused-arg]
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many uploads. Please retry shortly."},
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
