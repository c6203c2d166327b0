# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from storefront.api import api_router
from storefront.data.database import Base, engine, init_db
from storefront.domain.errors import DependencyError, ServiceError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")
    yield


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, DependencyError):
        # przyczyna tylko w logach
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Cart & Orders",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.include_router(api_router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
