import logging
import sys
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, get_settings
from .database import create_db_engine, init_db, make_session_factory
from .dependencies import request_gate
from .errors import register_error_handlers
from .routers import auth, categories, health, tasks
from .security import TokenService
from .stores.fixtures import seed_demo_data
from .stores.memory import MemoryDatabase
from .stores.providers import MemoryStoreProvider, SqlStoreProvider

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Task Manager API",
        version=__version__,
        dependencies=[Depends(request_gate)],
    )
    app.state.settings = settings
    app.state.token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )

    if settings.skip_db_connection:
        data = MemoryDatabase()
        seed_demo_data(data, bcrypt_rounds=settings.bcrypt_rounds)
        app.state.store_provider = MemoryStoreProvider(data)
        logger.info("Running without a database, using in-memory stores")
    else:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        app.state.store_provider = SqlStoreProvider(make_session_factory(engine))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix)
    app.include_router(auth.router, prefix=prefix)
    app.include_router(categories.router, prefix=prefix)
    app.include_router(tasks.router, prefix=prefix)
    return app


def build_app() -> FastAPI:
    """Entry point for ``uvicorn --factory taskapi.main:build_app``."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings)


def run() -> None:
    import uvicorn

    uvicorn.run("taskapi.main:build_app", factory=True, host="0.0.0.0", port=8000)
