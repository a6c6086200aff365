from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from callsignal.core.config import settings
from callsignal.core.error_handler import (
    custom_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from callsignal.core.exceptions import BaseAPIException
from callsignal.core.log_config import logger

from callsignal.api.calls import router as calls_router
from callsignal.api.health import router as health_router
from callsignal.globals import redis_manager, notification_service
from callsignal.utils.timing_middleware import TimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        notification_service.start()
        await redis_manager.connect()
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        await notification_service.close()
        await redis_manager.disconnect()
        raise
    logger.info("Call signaling server started.")
    yield
    await notification_service.close()
    await redis_manager.disconnect()

app = FastAPI(title="Call Signaling Server", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BaseAPIException, custom_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
app.add_middleware(TimingMiddleware)

app.include_router(health_router)
app.include_router(calls_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("callsignal.main:app", host="0.0.0.0", port=settings.port)
