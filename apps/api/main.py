import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config.settings import settings
from shared.config.redis import init_redis, close_redis
from shared.storage.list_store import InMemoryListStore, RedisListStore
from apps.api.routers import prompts_router

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.store_backend == "memory":
        app.state.list_store = InMemoryListStore()
        logger.info("Using in-memory prompt store")
    else:
        client = await init_redis()
        app.state.list_store = RedisListStore(client, settings.prompts_key)
        logger.info(f"Using Redis list '{settings.prompts_key}' as prompt store")
    yield
    await close_redis()


app = FastAPI(
    title="Prompt Marketplace API",
    description="Listing service for shared and paid AI prompts",
    version="1.0.0",
    lifespan=lifespan
)


def allow_origin_for(request: Request) -> str:
    allowed = settings.allowed_origins
    origin = request.headers.get("origin")
    if "*" in allowed or not allowed:
        return "*"
    if origin in allowed:
        return origin
    return allowed[0]


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    """Permissive cross-origin headers on every response, preflight answered directly"""
    if request.method == "OPTIONS":
        response = Response(status_code=200)
    else:
        try:
            response = await call_next(request)
        except Exception:
            logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=True)
            response = JSONResponse(status_code=500, content={"error": "Internal server error"})

    response.headers.setdefault("Access-Control-Allow-Origin", allow_origin_for(request))
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        message = "Method not allowed"
    elif exc.status_code == 404:
        message = "Not found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


app.include_router(
    prompts_router.router,
    prefix="/prompts",
    tags=["Prompts"]
)


@app.get("/")
async def root():
    return {
        "message": "Prompt Marketplace API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "prompt-marketplace"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
