"""
FastAPI Application Entry Point

Bro Bro Foods Storefront - order placement, WhatsApp/UPI hand-off links,
self-reported payment confirmation and a fragment-token admin view.

Endpoints:
    - GET /api/menu: Menu and minimum-order rule
    - POST /api/orders: Place an order
    - GET /api/orders/{id}/checkout: Payment surface with hand-off links
    - POST /api/orders/{id}/payment-confirmation: Submit a UTR
    - GET /api/admin/orders: Filtered order table (admin)
    - PATCH /api/admin/orders/{id}/status: Change status (admin)
    - GET /health: System health check

Author: Bro Bro Foods
Version: 1.0.0
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from storefront.core.config import StorageBackend, get_settings, setup_logging
from storefront.core.exceptions import (
    IllegalTransitionError,
    OrderValidationError,
    StorageUnavailableError,
)
from storefront.database import engine, init_db
from storefront.models import OrderStatus
from storefront.schemas import (
    AdminOrderListResponse,
    AdsConfig,
    AdsSettings,
    AdsSettingsValidation,
    CheckoutResponse,
    DownloadKind,
    DownloadStatus,
    ErrorResponse,
    HealthResponse,
    LastBuildStatus,
    LastBuildStatusResponse,
    MenuResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderResponse,
    PaymentConfirmation,
    PaymentConfirmationAccepted,
    PaymentConfirmationCreate,
    PaymentFilter,
    StatusUpdateRequest,
    TimelineResponse,
)
from storefront.services.admin import (
    ALL_STATUSES,
    authorized,
    filter_orders,
    sort_newest_first,
    summarize_orders,
)
from storefront.services.availability import probe_download
from storefront.services.checkout import build_checkout
from storefront.services.orders import (
    OrderLifecycle,
    menu_items,
    minimum_order_message,
    place_order,
)
from storefront.services.payments import confirm_payment
from storefront.services.settings_store import (
    ConfigStore,
    build_ads_config,
    get_ads_store,
    validate_ads_settings,
)
from storefront.services.storage import BaseOrderStorage, get_order_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No such order"


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.order_storage == StorageBackend.SQL:
        await init_db()
        logger.info("✅ Database initialized")

    storage = get_order_storage()
    logger.info(f"✅ Order Storage: {storage.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Review production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Momo storefront backend: order placement, WhatsApp/UPI hand-off links, "
        "self-reported payment confirmation and order management."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_lifecycle(
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> OrderLifecycle:
    return OrderLifecycle(storage)


def require_admin(
    x_admin_fragment: Optional[str] = Header(None, alias="x-admin-fragment"),
) -> None:
    """
    Re-derive admin access from the caller's current URL fragment.

    The client forwards location.hash on every admin request; there is no
    session, so removing the token from the URL revokes access immediately.
    """
    if not authorized(x_admin_fragment):
        raise HTTPException(status_code=403, detail="Admin access required")


def get_ads_settings_store() -> ConfigStore[AdsSettings]:
    return get_ads_store()


def _not_found(order_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{NOT_FOUND_MESSAGE} (#{order_id})")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🥟 Welcome to {settings.business_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "menu": "/api/menu",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> HealthResponse:
    """Verify the order store is reachable."""
    storage_status = "healthy" if await storage.health_check() else "unhealthy"
    database_status = storage_status if storage.provider_name == "sql" else "not used"

    return HealthResponse(
        status="operational" if storage_status == "healthy" else "degraded",
        database=database_status,
        storage=f"{storage.provider_name}: {storage_status}",
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# MENU & ORDER ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=MenuResponse,
    tags=["Menu"],
)
async def get_menu() -> MenuResponse:
    """Plates on offer and the minimum-order rule."""
    return MenuResponse(
        items=menu_items(),
        min_plates_per_order=settings.min_plates_per_order,
        minimum_order_message=minimum_order_message(),
        delivery_charge=settings.delivery_charge,
    )


@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> OrderCreateResponse:
    """
    Place an order from the menu.

    The response carries the checkout surface: the WhatsApp link announcing
    the order and the payment links for the post-order screen.
    """
    logger.info(f"Placing order: {order_data.quantity} x {order_data.plate_type.value}")

    order = await place_order(lifecycle, order_data.plate_type, order_data.quantity)

    return OrderCreateResponse(
        success=True,
        message="Order placed successfully!",
        order=order,
        checkout=build_checkout(order),
    )


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await lifecycle.get_order(order_id)
    if order is None:
        raise _not_found(order_id)
    return order


@app.get(
    "/api/orders/{order_id}/checkout",
    response_model=CheckoutResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_checkout(
    order_id: int,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> CheckoutResponse:
    """Payment surface for an existing order."""
    order = await lifecycle.get_order(order_id)
    if order is None:
        raise _not_found(order_id)
    return build_checkout(order)


# =============================================================================
# PAYMENT CONFIRMATION ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders/{order_id}/payment-confirmation",
    response_model=PaymentConfirmationAccepted,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Payments"],
    summary="Submit UTR",
)
async def submit_payment_confirmation(
    order_id: int,
    payload: PaymentConfirmationCreate,
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> PaymentConfirmationAccepted:
    """
    Attach the customer's UTR to an order.

    This records what the customer reports; it does not verify the payment
    and does not change the order status. The response links continue the
    flow on WhatsApp.
    """
    result = await confirm_payment(
        storage,
        order_id,
        utr=payload.utr,
        paid_via=payload.paid_via.value,
        paid_at=payload.paid_at,
    )
    if result is None:
        raise _not_found(order_id)

    return PaymentConfirmationAccepted(
        success=True,
        message="Payment details received. Please share the screenshot on WhatsApp.",
        order=result.order,
        payment_confirmation_link=result.payment_confirmation_link,
        screenshot_request_link=result.screenshot_request_link,
    )


@app.get(
    "/api/orders/{order_id}/payment-confirmation",
    response_model=Optional[PaymentConfirmation],
    responses={404: {"model": ErrorResponse}},
    tags=["Payments"],
)
async def get_payment_confirmation(
    order_id: int,
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> Optional[PaymentConfirmation]:
    """Current payment confirmation (null while unpaid)."""
    order = await storage.get_order(order_id)
    if order is None:
        raise _not_found(order_id)
    return order.payment_confirmation


# =============================================================================
# ADS & DOWNLOADS
# =============================================================================

@app.get(
    "/api/ads",
    response_model=AdsConfig,
    tags=["Ads"],
)
async def get_ads_config(
    native: bool = Query(False, description="Request comes from the native app wrapper"),
    store: ConfigStore[AdsSettings] = Depends(get_ads_settings_store),
) -> AdsConfig:
    """Ad snippets for the page (all empty while ads are disabled)."""
    return build_ads_config(store.load(), native_wrapper=native)


@app.get(
    "/api/downloads/{kind}",
    response_model=DownloadStatus,
    tags=["Downloads"],
)
async def get_download_status(kind: DownloadKind) -> DownloadStatus:
    """Whether the customer or admin APK can be downloaded yet."""
    return await probe_download(kind)


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@app.get(
    "/api/admin/orders",
    response_model=AdminOrderListResponse,
    responses={503: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_list_orders(
    payment: PaymentFilter = Query(PaymentFilter.ALL),
    status: str = Query(ALL_STATUSES),
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> Any:
    """
    Order table for staff, newest first.

    Always re-fetched from the store. If the store cannot be read the
    response is an explicit orders_unavailable error, never an empty table.
    """
    if status != ALL_STATUSES and status not in {s.value for s in OrderStatus}:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Options: {[ALL_STATUSES] + [s.value for s in OrderStatus]}"
        )

    try:
        orders = await storage.get_all_orders()
    except StorageUnavailableError as e:
        logger.error(f"Admin order list unavailable: {e}")
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="orders_unavailable",
                detail="Orders could not be loaded. Please refresh to try again.",
            ).model_dump(),
        )

    filtered = sort_newest_first(filter_orders(orders, payment, status))
    return AdminOrderListResponse(
        total=len(filtered),
        summary=summarize_orders(orders),
        orders=filtered,
    )


@app.get(
    "/api/admin/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_get_order(
    order_id: int,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> OrderResponse:
    order = await lifecycle.get_order(order_id)
    if order is None:
        raise _not_found(order_id)
    return order


@app.get(
    "/api/admin/orders/{order_id}/timeline",
    response_model=TimelineResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_get_timeline(
    order_id: int,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> TimelineResponse:
    events = await lifecycle.get_timeline(order_id)
    if events is None:
        raise _not_found(order_id)
    return TimelineResponse(order_id=order_id, events=events)


@app.patch(
    "/api/admin/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_update_status(
    order_id: int,
    payload: StatusUpdateRequest,
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
) -> OrderResponse:
    """Move an order to any status. Same-status updates are recorded too."""
    order = await lifecycle.update_status(
        order_id,
        payload.status,
        payload.changed_by or settings.admin_changed_by,
    )
    if order is None:
        raise _not_found(order_id)
    return order


@app.get(
    "/api/admin/ads-settings",
    response_model=AdsSettings,
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_get_ads_settings(
    store: ConfigStore[AdsSettings] = Depends(get_ads_settings_store),
) -> AdsSettings:
    return store.load()


@app.put(
    "/api/admin/ads-settings",
    response_model=AdsSettings,
    responses={400: {"model": AdsSettingsValidation}},
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_save_ads_settings(
    payload: AdsSettings,
    store: ConfigStore[AdsSettings] = Depends(get_ads_settings_store),
) -> Any:
    validation = validate_ads_settings(payload)
    if not validation.valid:
        return JSONResponse(status_code=400, content=validation.model_dump())
    return store.save(payload)


@app.delete(
    "/api/admin/ads-settings",
    response_model=AdsSettings,
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_clear_ads_settings(
    store: ConfigStore[AdsSettings] = Depends(get_ads_settings_store),
) -> AdsSettings:
    return store.clear()


@app.get(
    "/api/admin/build-status",
    response_model=Optional[LastBuildStatusResponse],
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_get_build_status(
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> Optional[LastBuildStatusResponse]:
    """Last recorded build/deploy outcome (null if none yet)."""
    return await storage.get_last_build_status()


@app.put(
    "/api/admin/build-status",
    response_model=LastBuildStatusResponse,
    dependencies=[Depends(require_admin)],
    tags=["Admin"],
)
async def admin_update_build_status(
    payload: LastBuildStatus,
    storage: BaseOrderStorage = Depends(get_order_storage),
) -> LastBuildStatusResponse:
    return await storage.update_last_build_status(payload)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderValidationError)
async def validation_exception_handler(
    request: Request,
    exc: OrderValidationError,
) -> JSONResponse:
    """Customer input problems: shown inline, form stays editable."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="validation_error", detail=exc.message).model_dump(),
    )


@app.exception_handler(StorageUnavailableError)
async def storage_exception_handler(
    request: Request,
    exc: StorageUnavailableError,
) -> JSONResponse:
    logger.error(f"Order store unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorResponse(
            error="storage_unavailable",
            detail="Something went wrong on our side. Please try again.",
        ).model_dump(),
    )


@app.exception_handler(IllegalTransitionError)
async def transition_exception_handler(
    request: Request,
    exc: IllegalTransitionError,
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content=ErrorResponse(error="illegal_transition", detail=str(exc)).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
