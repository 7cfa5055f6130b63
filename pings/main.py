from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from pings.api.routes import admin, auth, pings
from pings.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler, topic_map_exception_handler
from pings.core.lifespan import lifespan
from pings.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from pings.engine.errors import TopicMapError

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(TopicMapError, topic_map_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
app.include_router(pings.router, prefix="/v1/pings", tags=["pings"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
