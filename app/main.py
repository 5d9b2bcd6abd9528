from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.api import dashboard
from app.core.logger import setup_logging, logger
from app.services.db_service import db_service
from app.services.sync_controller import BookingSyncController
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting Bookings Dashboard")
    controller = BookingSyncController(db_service)
    app.state.controller = controller
    await controller.mount()
    try:
        yield
    finally:
        # Shutdown
        await controller.unmount()
        app.state.controller = None
        logger.info("🛑 Shutting down dashboard")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("🔥 UNHANDLED ERROR: {}", exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

app.include_router(dashboard.router, prefix=settings.API_V1_STR, tags=["Dashboard"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
