# mailtrust/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .errors import MailtrustError
from .routers import reputation, stats, temp_domains, users, verify
from .services.quota import ensure_demo_user
from .services.scoring import Services, build_services

LOG = logging.getLogger("mailtrust.api")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: Services = app.state.services or build_services(app.state.settings)
    app.state.services = services
    await services.start()
    demo = await ensure_demo_user(services.store)
    app.state.demo_user_id = demo.id
    LOG.info("%s started", app.title)
    try:
        yield
    finally:
        await services.stop()
        LOG.info("%s stopped", app.title)


async def handle_mailtrust_error(request: Request, exc: MailtrustError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    # ---------------------------------------------------
    # CORS (restrict origins in production)
    # ---------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MailtrustError, handle_mailtrust_error)

    # ---------------------------------------------------
    # Health check
    # ---------------------------------------------------
    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # ---------------------------------------------------
    # Routers
    # ---------------------------------------------------
    app.include_router(verify.router, tags=["verify"])
    app.include_router(temp_domains.router, tags=["temp-domains"])
    app.include_router(reputation.router, prefix="/reputation", tags=["reputation"])
    app.include_router(users.router, prefix="/user", tags=["user"])
    app.include_router(stats.router, tags=["stats"])

    return app


app = create_app()
