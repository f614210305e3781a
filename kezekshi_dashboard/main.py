# kezekshi_dashboard/main.py
import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kezekshi_dashboard.core.database import create_tables
from kezekshi_dashboard.core.errors import KezekshiAPIError, ValidationError
from kezekshi_dashboard.core.http import KezekshiHTTP
from kezekshi_dashboard.core.logging import log, setup_logging
from kezekshi_dashboard.routers import auth, budgets, children, dashboard, profile, stats

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    app.state.http = KezekshiHTTP()
    try:
        yield
    finally:
        await app.state.http.close()

def create_app() -> FastAPI:
    app = FastAPI(title="Kezekshi Dashboard Gateway", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_trace(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4()))
        start = time.time()
        response = await call_next(request)
        took = int((time.time() - start) * 1000)
        log.info("request", path=request.url.path, method=request.method, status=response.status_code,
                 took_ms=took, trace_id=trace_id)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(KezekshiAPIError)
    async def kezekshi_error_handler(request: Request, exc: KezekshiAPIError):
        status = exc.status if 400 <= exc.status < 600 else 502
        log.warning("kezekshi_api_error", path=request.url.path, status=exc.status, detail=str(exc.detail))
        return JSONResponse(status_code=status, content={"detail": exc.detail or "Upstream error"})

    @app.exception_handler(httpx.HTTPError)
    async def transport_error_handler(request: Request, exc: httpx.HTTPError):
        log.error("kezekshi_transport_error", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=502, content={"detail": "Kezekshi API is unavailable"})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(stats.router)
    app.include_router(budgets.router)
    app.include_router(profile.router)
    app.include_router(children.router)
    return app

app = create_app()
