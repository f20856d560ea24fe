from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from helpdesk.api.routes import router
from helpdesk.api.admin_routes import router as admin_router
from helpdesk.core.errors import FatalConfigError
from helpdesk.observability.logging import log
from helpdesk.settings import settings, validate_runtime_config


def check_runtime_config():
    try:
        validate_runtime_config()
    except FatalConfigError as e:
        log(event="runtime_config_invalid", error=str(e))
        # Refuse to serve in production; locally the webhook still boots for testing
        if settings.is_production:
            raise
        return
    log(
        event="boot",
        env=settings.APP_ENV,
        dispatchMode=settings.DISPATCH_MODE,
        voice=settings.VOICE_ENABLED,
        pdf=settings.PDF_DELIVERY_ENABLED,
        bilingual=settings.BILINGUAL_ENABLED,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_runtime_config()
    yield


app = FastAPI(title="Consumer Grievance Helpdesk", lifespan=lifespan)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Helpdesk is running. Channel webhook: POST /whatsapp",
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# The channel retries on non-2xx, which would replay the turn; log and acknowledge instead.
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(
        event="unhandled_exception",
        path=request.url.path,
        errorType=type(exc).__name__,
        error=str(exc)[:300],
    )
    return JSONResponse(status_code=200, content={"status": "ok"})
