from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config import settings
from shared.config.database import Database
from shared.errors import register_error_handlers
from shared.observability.setup import setup_observability

from .models import Cart, CartItem  # noqa: F401  Import to register with Base
from .router import router, public_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await database.create_all()
    app.state.db = database
    yield
    await database.dispose()


cart_app = FastAPI(title="Cart Service", version="2.0.0", lifespan=lifespan)

setup_observability(cart_app, "cart_service")
register_error_handlers(cart_app)

cart_app.include_router(public_router)
cart_app.include_router(router)
