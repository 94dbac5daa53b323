import logging
import time
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from . import config, models, schemas
from .auth import get_current_admin
from .database import engine
from .routers import admin, bookings, client, communication, dashboard, payments
from .telegram_service import telegram_notifier

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Create tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="DT Protection Booking System", version="1.0.0")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(bookings.router)
app.include_router(admin.router)
app.include_router(payments.router)
app.include_router(client.router)
app.include_router(dashboard.router)
app.include_router(communication.router)


@app.get("/")
async def root():
    return {"message": f"{config.COMPANY_NAME} API", "version": app.version}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/services", response_model=List[schemas.ServiceInfo])
def list_services():
    """Service catalogue for the booking form"""
    return [
        {"value": value, "title": title, "description": description}
        for value, (title, description) in models.SERVICE_TYPES.items()
    ]


@app.post("/api/admin/test-telegram", response_model=schemas.MessageResponse)
async def test_telegram(admin: models.Admin = Depends(get_current_admin)):
    """Send a test Telegram message to every staff chat"""
    if not telegram_notifier.admin_chat_ids:
        raise HTTPException(
            status_code=400,
            detail="Telegram chat IDs are not configured. Set TELEGRAM_ADMIN_CHAT_IDS in .env"
        )

    success = False
    for chat_id in telegram_notifier.admin_chat_ids:
        if await telegram_notifier.send_test_message(chat_id):
            success = True

    if not success:
        raise HTTPException(status_code=500, detail="Failed to send test message")
    return {"message": "Test message sent successfully"}
