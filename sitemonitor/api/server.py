import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sitemonitor import __version__
from sitemonitor.api.routers import create_monitor_router, create_systems_router
from sitemonitor.container import ENV, Container
from sitemonitor.db.engine import init_schema

logger = logging.getLogger(__name__)


def create_app(container: Container = None) -> FastAPI:
    """Build the web trigger surface.

    On startup the schema is created, the tick dispatcher starts and runs
    left incomplete by a previous process are re-dispatched.
    """
    if container is None:
        container = Container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_schema(container.db_engine())
        dispatcher = container.tick_dispatcher()
        dispatcher.start()
        try:
            container.crawl_run_recovery().recover()
        except Exception:
            logger.exception("Startup recovery failed")
        try:
            yield
        finally:
            dispatcher.shutdown(wait=False)

    app = FastAPI(title="sitemonitor", version=__version__, lifespan=lifespan)
    app.state.container = container

    cfg = container.config
    app.include_router(
        create_monitor_router(
            crawl_service=container.resumable_crawl_service(),
            settings_store_factory=container.settings_store,
            access_policy=container.access_policy(),
            dispatch_token=cfg.MONITOR_DISPATCH_TOKEN(),
            defaults={"from": cfg.MONITOR_MAIL_FROM() or ""},
        )
    )
    app.include_router(create_systems_router(ENV))
    return app
