import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.exceptions import ApiError, api_error_handler, internal_error_handler, validation_error_handler
from core.logging import setup_logger
from core.middleware import request_logger
from routes.checkout import router as checkout_router
from routes.nupay import router as nupay_router
from routes.pages import router as pages_router
from routes.payment_links import router as payment_links_router
from routes.payments import methods_router as payment_methods_router
from routes.payments import router as payments_router

setup_logger(settings.LOG_LEVEL)
logger = logging.getLogger("checkout")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.middleware("http")(request_logger)

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
# Unhandled errors still answer with JSON so the front-end never gets an empty body
app.add_exception_handler(Exception, internal_error_handler)

if os.path.isdir(settings.STATIC_DIR):
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
else:
    logger.warning(f"Static directory not found, /static disabled: {os.path.abspath(settings.STATIC_DIR)}")

app.include_router(pages_router)
app.include_router(checkout_router)
app.include_router(payments_router)
app.include_router(payment_methods_router)
app.include_router(payment_links_router)
app.include_router(nupay_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
