import logging, time
from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import redis

from nemdash.config import ALLOW_ORIGINS, LOG_LEVEL
from nemdash.database import Base, SessionLocal, engine
from nemdash.models import generator, market  # noqa: F401  register tables
from nemdash.routes import dashboard
from nemdash.services.cache import redis_client

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("nemdash")

# Secure headers middleware
class SecureHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer'
        return response

# Request logging middleware
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = (time.time() - start_time) * 1000  # ms
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {duration:.2f}ms")
        return response

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="NEM Revenue Dashboard API",
    description="Generator list, power/price/revenue charts and revenue and performance leaderboards for the NEM",
    version="1.0.0"
)

# Enable compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"]
)

app.add_middleware(SecureHeadersMiddleware)
app.add_middleware(LoggingMiddleware)

# API versioning: v1
app.include_router(dashboard.router, prefix="/api/v1", tags=["dashboard"])

@app.get("/")
def read_root():
    return {"message": "Welcome to the NEM Revenue Dashboard API", "docs": "/docs"}

@app.get("/health")
def health_check():
    db_status, redis_status = 'ok', 'ok'
    db = SessionLocal()
    try:
        db.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"
    finally:
        db.close()
    try:
        if not redis_client.ping():
            redis_status = "error: cannot ping Redis"
    except redis.RedisError as e:
        redis_status = f"error: {str(e)}"
    return {"db": db_status, "redis": redis_status}
