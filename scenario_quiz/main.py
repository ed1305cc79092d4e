import logging
from contextlib import asynccontextmanager
from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import Settings, settings as default_settings
from .core.cors import setup_cors
from .core.logging import setup_logging
from .core.redis_manager import close_redis, get_redis
from .api.v1.routers import quiz as quiz_router
from .domain.errors import QuizError
from .domain.question_bank import load_bank
from .repositories.analytics_repository import AnalyticsSink, LoggingAnalyticsSink, SupabaseAnalyticsSink
from .repositories.redis_session_store import RedisSessionStore
from .repositories.session_store import InMemorySessionStore, SessionStore
from .services.quiz_engine import QuizEngine

logger = logging.getLogger("scenario_quiz")


async def build_store(settings: Settings) -> SessionStore:
    if settings.SESSION_BACKEND == "redis":
        r = await get_redis(settings)
        return RedisSessionStore(
            r,
            prefix=settings.REDIS_KEY_PREFIX,
            ttl_seconds=settings.SESSION_TTL_SECONDS,
            cas_retries=settings.REDIS_CAS_RETRIES,
        )
    return InMemorySessionStore()


def build_analytics(settings: Settings) -> AnalyticsSink:
    if settings.supabase_enabled:
        from .core.supabase_client import get_supabase

        return SupabaseAnalyticsSink(get_supabase(settings), table=settings.ANALYTICS_TABLE)
    return LoggingAnalyticsSink()


def create_app(settings: Settings = default_settings, engine: QuizEngine | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is None:
            bank = load_bank(settings.QUESTION_BANK_PATH)
            store = await build_store(settings)
            app.state.engine = QuizEngine(
                bank,
                store,
                build_analytics(settings),
                certificate_threshold=settings.CERTIFICATE_THRESHOLD,
            )
        logger.info({
            "event": "api_startup",
            "env": settings.APP_ENV,
            "session_backend": settings.SESSION_BACKEND,
            "questions": app.state.engine.bank.total_questions,
        })
        try:
            yield
        finally:
            if settings.SESSION_BACKEND == "redis":
                await close_redis()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    if engine is not None:
        app.state.engine = engine
    setup_cors(app, settings)

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError):
        if exc.status_code >= 500:
            logger.error({"event": "quiz_error", "path": request.url.path, "error": exc.error_code, "detail": exc.detail})
        else:
            logger.info({"event": "quiz_rejected", "path": request.url.path, "error": exc.error_code, "detail": exc.detail})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.error_code, "detail": exc.detail})

    @app.middleware("http")
    async def timing_middleware(request: Request, call_next):
        start = perf_counter()
        response = await call_next(request)
        logger.debug({
            "event": "request_timing",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": int((perf_counter() - start) * 1000),
        })
        return response

    app.include_router(quiz_router.router, prefix=settings.API_V1_PREFIX)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


app = create_app()
