from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config import settings
from shared.config.database import Database
from shared.errors import register_error_handlers
from shared.observability import setup_observability
from shared.security import limiter
from .router import admin_router, router, public_router
from .models import Order, OrderItem  # noqa: F401  Import to register with Base


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await database.create_all()
    app.state.db = database
    yield
    await database.dispose()


order_app = FastAPI(title="Order Service", version="2.0.0", lifespan=lifespan)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(order_app, "order_service")
register_error_handlers(order_app)

# --- SECURITY SETUP ---
order_app.state.limiter = limiter
order_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

order_app.include_router(public_router)
order_app.include_router(admin_router)
order_app.include_router(router)
