import logging
import time

from fastapi import FastAPI, Request

from sitemedia.api.dependencies import Container, build_container
from sitemedia.api.routes import api_router
from sitemedia.core.logging import REQUEST_ID_HEADER, bind_request_id, configure_logging
from sitemedia.core.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Media asset resolution service for the practice website",
        version=settings.VERSION,
    )
    app.state.container = container

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        with bind_request_id(request.headers.get(REQUEST_ID_HEADER)) as request_id:
            started = time.perf_counter()
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "Request handled.",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            return response

    @app.on_event("startup")
    def build_media_container() -> None:
        if app.state.container is None:
            app.state.container = build_container(settings)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
