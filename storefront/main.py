from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import settings
from storefront.core.logging_config import setup_logging, get_logger
from storefront.db.session import create_db_and_tables

setup_logging()
log = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    log.info(f"{settings.PROJECT_NAME} starting with payment provider '{settings.PAYMENT_PROVIDER}'")
    yield
    log.info(f"{settings.PROJECT_NAME} shutting down")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="Catalog, session cart, checkout and payment reconciliation"
)

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

@app.get("/health")
def health_check():
    return {"status": "healthy"}

from storefront.routers import auth, products, cart, checkout, orders

app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(products.router, prefix="/api/v1/products", tags=["products"])
app.include_router(products.category_router, prefix="/api/v1/categories", tags=["products"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["cart"])
app.include_router(checkout.router, prefix="/api/v1/checkout", tags=["checkout"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
