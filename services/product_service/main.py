from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config import settings
from shared.config.database import Database
from shared.errors import register_error_handlers
from shared.observability import setup_observability
from .router import router, public_router
from .models import Product  # noqa: F401  Import to register with Base


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Only runs when the service is served on its own; the cluster app wires state itself
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await database.create_all()
    app.state.db = database
    yield
    await database.dispose()


product_app = FastAPI(title="Product Service", version="2.0.0", lifespan=lifespan)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(product_app, "product_service")
register_error_handlers(product_app)

product_app.include_router(public_router)
product_app.include_router(router)
