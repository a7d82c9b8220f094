from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import uvicorn
import time

from shortly.database import engine, Base
from shortly.routers import health, links, tools
from shortly.config import settings
from shortly.logging_config import configure_logging
from shortly.rate_limit import check_rate_limit, is_limited_path
from shortly.utils import get_client_ip

logger = configure_logging()


def init_database() -> bool:
    """Создает таблицы; при недоступной БД сервис работает в демо-режиме"""
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("Не удалось подключиться к базе данных: %s", e)
        logger.warning("Сервис работает в демо-режиме без сохранения ссылок")
        return False
    logger.info("Подключение к базе данных установлено")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управляет жизненным циклом приложения"""
    logger.info("Запуск приложения %s", settings.APP_NAME)

    app.state.database_ready = init_database()

    yield

    logger.info("Завершение работы приложения...")
    engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="API для сервиса сокращения ссылок",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(tools.router)
# links содержит маршрут /{short_code}, поэтому подключается последним
app.include_router(links.router)


@app.middleware("http")
async def rate_limit_requests(request: Request, call_next):
    if not settings.RATE_LIMIT_ENABLED or not is_limited_path(request.url.path):
        return await call_next(request)

    client_ip = get_client_ip(request) or "unknown"
    if check_rate_limit(client_ip) is False:
        logger.info("Превышен лимит запросов для %s", client_ip)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW)},
            content={"detail": "Слишком много запросов с этого IP, попробуйте позже"}
        )

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    logger.info("%s %s - %s - %.4fs", request.method, request.url.path, response.status_code, process_time)

    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Необработанная ошибка: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Внутренняя ошибка сервера"}
    )


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "Shortly URL Shortener API",
        "docs_url": "/docs",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    uvicorn.run("shortly.main:app", host="0.0.0.0", port=8000, reload=True)
