from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request

from academy.config import settings
from academy.routers import advance_classes, daily_classes, holidays, reports, salary_reports, weekly_classes
from academy.scheduler import start_scheduler, stop_scheduler
from academy.store import get_store

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    get_store()
    if settings.enable_scheduler:
        start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(title=settings.app_name, version='0.1.0', lifespan=lifespan)


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.metrics_slow_ms:
        logger.info(
            'slow_request method=%s path=%s status=%s duration_ms=%.2f',
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
    return response


app.include_router(weekly_classes.router)
app.include_router(daily_classes.router)
app.include_router(advance_classes.router)
app.include_router(holidays.router)
app.include_router(salary_reports.router)
app.include_router(reports.router)


@app.get('/')
def health():
    return {'app': settings.app_name, 'status': 'ok'}


@app.get('/health')
def healthcheck():
    return {'status': 'ok'}
