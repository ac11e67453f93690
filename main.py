from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.config import settings
from shared.config.database import Database

from services.product_service.main import product_app
from services.order_service.main import order_app
from services.cart_service.main import cart_app

SERVICE_APPS = (product_app, order_app, cart_app)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Mounted apps do not run their own lifespan; they share this client
    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await database.create_all()
    app.state.db = database
    for service_app in SERVICE_APPS:
        service_app.state.db = database
    yield
    await database.dispose()


app = FastAPI(title="Ecommerce Cluster", lifespan=lifespan)

app.mount("/products", product_app)
app.mount("/orders", order_app)
app.mount("/cart", cart_app)
