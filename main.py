from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from tripsketch.core.biz_response import BizResponse
from tripsketch.core.config import settings
from tripsketch.core.exceptions import Unauthorized
from tripsketch.core.logx import logger, setup_logging
from tripsketch.routers import trips, trip_likes
from tripsketch.storage.database import init_db


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    app = FastAPI(title=settings.PROJECT_NAME)

    # 注册路由
    app.include_router(trips.trips_router)
    app.include_router(trip_likes.trip_likes_router)

    # 身份缺失（由 get_current_principal 抛出）
    @app.exception_handler(Unauthorized)
    def handle_unauthorized(request: Request, exc: Unauthorized):
        logger.warning(f"unauthorized request {request.method} {request.url.path}")
        return BizResponse(data=None, msg=str(exc), status_code=401)

    # 请求体 / 参数校验失败统一按 400 返回
    @app.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError):
        return BizResponse(data=exc.errors(), msg="invalid request", status_code=400)

    @app.on_event("startup")
    def on_startup():
        if settings.DB_AUTO_CREATE:
            init_db()
        logger.info(f"{settings.PROJECT_NAME} started")

    @app.get("/")
    def root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}"}

    return app


app = create_app()

# uvicorn main:app
# uvicorn main:app --reload
