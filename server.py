# server.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from auth import router as auth_router
from cart import router as cart_router
from custom_orders import router as custom_orders_router
from designers import router as designers_router
from errors import StoreError
from interface import build_stores
from products import router as products_router
from settings import settings

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)

# --- App Initialization ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Jewelry storefront API: catalog, cart and checkout, custom orders and designers.",
    version="1.0.0",
)

# --- CORS Middleware ---
origins = settings.CORS_ORIGINS.split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Startup Event ---
@app.on_event("startup")
async def on_startup():
    """Seed the in-memory stores once per process."""
    if getattr(app.state, "stores", None) is None:
        app.state.stores = build_stores()
    log.info("Stores ready.")


# --- Error Mapping ---
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(include_url=False, include_context=False, include_input=False)},
    )


# =======================================
# ROUTER INCLUSION
# =======================================
app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(cart_router, prefix=settings.API_PREFIX)
app.include_router(custom_orders_router, prefix=settings.API_PREFIX)
app.include_router(designers_router, prefix=settings.API_PREFIX)
app.include_router(auth_router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} running", "currency": settings.CURRENCY}


if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
