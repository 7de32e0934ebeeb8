# server.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from settings import settings

# --- Logging Configuration ---
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)

import auth  # noqa: E402
import designs  # noqa: E402
import notifications  # noqa: E402
import users  # noqa: E402
from db import init_models  # noqa: E402
from errors import ok, register_exception_handlers  # noqa: E402

# --- App Initialization ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Social gallery API: designs, likes, comments, shares and follows.",
    version="1.0.0",
)

# --- CORS Middleware ---
origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error Envelope ---
register_exception_handlers(app)

# --- Routers ---
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(designs.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(notifications.router, prefix=settings.API_PREFIX)


# --- Database Startup Event ---
@app.on_event("startup")
async def on_startup():
    """Create database tables on startup."""
    await init_models()
    log.info(f"🚀 {settings.PROJECT_NAME} started; API mounted at {settings.API_PREFIX}")


@app.get("/", tags=["Health"])
async def root():
    return ok({"service": settings.PROJECT_NAME}, message="Backend is running 🚀")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
