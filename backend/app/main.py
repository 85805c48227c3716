from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import health
from app.core.config import settings
from app.core.monitoring import configure_error_monitoring
from app.core.observability import configure_observability
from app.domains.charts.router import router as charts_router
from app.domains.progress.router import router as progress_router
from app.domains.reporting.router import router as reporting_router
from worktime.logging import configure_logging, get_logger

configure_logging(settings.log_level)
configure_observability()
configure_error_monitoring()
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.cors_origins] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(reporting_router)
app.include_router(charts_router)
app.include_router(progress_router)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("startup_complete", env=settings.env, data_path=str(settings.data_path))


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Worktime reporting API running", "environment": settings.env}
