from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront API"
    DATABASE_URL: str = "sqlite:///./storefront.db"
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 1 week

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # Cart session cookie (falls back to the X-Session-Id header)
    SESSION_COOKIE_NAME: str = "storefront_session"
    # Carts untouched for this long are dropped
    CART_SESSION_IDLE_MINUTES: int = 120

    # Payment provider: "fake" for dev/testing, "razorpay" for production
    PAYMENT_PROVIDER: str = "fake"
    RAZORPAY_KEY_ID: str = "rzp_test_placeholder"
    RAZORPAY_KEY_SECRET: str = "rzp_secret_placeholder"
    PAYMENT_WEBHOOK_SECRET: str = "webhook_secret"
    PAYMENT_TIMEOUT_SECONDS: float = 10.0
    CURRENCY: str = "eur"

    # Checkout
    CHECKOUT_SUCCESS_URL: str = "http://localhost:5173/success/"
    CHECKOUT_CANCEL_URL: str = "http://localhost:5173/cancel"
    CHECKOUT_VERIFY_PRICES: bool = False

    # Orders left unpaid longer than this are reported as stale
    PENDING_ORDER_STALE_MINUTES: int = 60

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
