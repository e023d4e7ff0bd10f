"""
FastAPI Application Entry Point

Order Stream - restaurant ordering backend with real-time order status
notifications over Server-Sent Events.

Endpoints:
    - GET /api/orders/notifications: Order status stream (orderId or contact)
    - GET /api/admin/notifications: Admin new-order stream
    - PUT /api/orders/{order_id}: Update order status
    - POST /api/orders: Create order (cash / admin)
    - GET /api/orders: List orders
    - GET /api/orders/check-status: Pull-based status check
    - GET /api/orders/next-order-id: Next daily order number
    - GET /api/notifications/stats: Live subscriber counts
    - GET /health: System health check
"""

import asyncio
import sys
import logging
from datetime import datetime, timezone
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
import redis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from orderstream.core.config import Settings, get_settings, setup_logging
from orderstream.core.exceptions import OrderServiceError
from orderstream.database import dispose_engine, init_db
from orderstream.realtime import (
    ConnectedEvent,
    NotificationStream,
    TopicRegistry,
    get_order_event_publisher,
    get_topic_registry,
    resolve_order_topic_key,
)
from orderstream.schemas import (
    ErrorResponse,
    HealthResponse,
    NextOrderIdResponse,
    NotificationStatsResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusCheckResponse,
    OrderStatusSummary,
    OrderStatusUpdate,
    StatusUpdateResponse,
)
from orderstream.services.orders import OrderService, get_order_service
from orderstream.services.orders.service import parse_status
from orderstream.services.sms import get_sms_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


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

    order_service = get_order_service()
    if settings.use_real_services:
        await init_db()
        logger.info("✅ Database initialized")
    logger.info(f"✅ Order Store: {order_service.repository.provider_name}")

    if settings.sms_notifications_enabled:
        from orderstream.services.sms.listener import StatusSmsListener

        get_order_event_publisher().add_listener(StatusSmsListener())
        logger.info(f"✅ Status SMS: {get_sms_service().provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info(f"✅ Keep-alive interval: {settings.keepalive_interval_seconds}s")
    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await dispose_engine()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant ordering backend. Order status changes are pushed to "
        "storefront, kitchen display and admin clients over Server-Sent Events."
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
# HELPER FUNCTIONS
# =============================================================================

def open_stream(
    registry: TopicRegistry,
    settings: Settings,
    topic_key: str,
    message: str,
    include_key: bool = True,
) -> StreamingResponse:
    """Build the SSE response for one connection."""
    handshake = ConnectedEvent(
        message=message,
        subscription_key=topic_key if include_key else None,
    )
    stream = NotificationStream(
        registry,
        topic_key,
        handshake,
        keepalive_interval=settings.keepalive_interval_seconds,
        queue_size=settings.sink_queue_size,
    )
    return stream.response()


def http_error(error: OrderServiceError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍕 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    order_service: OrderService = Depends(get_order_service),
    registry: TopicRegistry = Depends(get_topic_registry),
) -> HealthResponse:
    """Verify all system components are operational."""

    store = order_service.repository
    store_status = "healthy" if await store.health_check() else "unhealthy"

    # Check Redis (Celery broker)
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    sms_status = "healthy" if await get_sms_service().health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [store_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        order_store=f"{store.provider_name}: {store_status}",
        redis=redis_status,
        sms_service=sms_status,
        active_streams=registry.subscriber_count(),
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# NOTIFICATION STREAMS
# =============================================================================

@app.get(
    "/api/orders/notifications",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Notifications"],
    summary="Order Status Stream",
)
async def order_notifications(
    order_id: Optional[str] = Query(None, alias="orderId"),
    contact: Optional[str] = Query(None),
    registry: TopicRegistry = Depends(get_topic_registry),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """
    Server-Sent Events stream of status updates for one order.

    Subscribe by `orderId`, or by `contact` when the client only knows the
    phone number the order was placed with. Missed events are not replayed;
    reconnecting clients should call /api/orders/check-status.
    """
    topic_key = resolve_order_topic_key(order_id, contact, settings.contact_key_prefix)
    if topic_key is None:
        raise HTTPException(status_code=400, detail="Missing orderId or contact parameter")

    return open_stream(registry, settings, topic_key, "Connected to order notifications")


@app.get(
    "/api/admin/notifications",
    response_class=StreamingResponse,
    tags=["Notifications"],
    summary="Admin New-Order Stream",
)
async def admin_notifications(
    registry: TopicRegistry = Depends(get_topic_registry),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Server-Sent Events stream of every new order, for the admin dashboard."""
    return open_stream(
        registry,
        settings,
        settings.admin_topic_key,
        "Connected to admin notifications",
        include_key=False,
    )


@app.get(
    "/api/notifications/stats",
    response_model=NotificationStatsResponse,
    tags=["Notifications"],
)
async def notification_stats(
    registry: TopicRegistry = Depends(get_topic_registry),
) -> NotificationStatsResponse:
    """Live subscriber counts per topic."""
    return NotificationStatsResponse(
        total_subscribers=registry.subscriber_count(),
        topics=registry.snapshot(),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Create Order",
)
async def create_order(
    order_data: OrderCreate,
    order_service: OrderService = Depends(get_order_service),
) -> OrderCreateResponse:
    """Create a new order and announce it on the admin feed."""
    logger.info(f"Creating order for: {order_data.customer_name}")

    try:
        order = await order_service.create_order(order_data)
    except OrderServiceError as e:
        raise http_error(e)

    return OrderCreateResponse(
        success=True,
        message="Order created successfully",
        order_id=order.id,
        daily_order_id=order.daily_order_id,
        order_date=order.order_date,
        total=order.total,
    )


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    order_kind: Optional[str] = Query(None, alias="type", description="'active' or 'past'"),
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, past orders only"),
    order_service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Orders for the kitchen display, delivery dashboard and admin."""
    try:
        orders = await order_service.list_orders(kind=order_kind, status=status, order_date=date)
    except OrderServiceError as e:
        raise http_error(e)

    return OrderListResponse(
        total=len(orders),
        orders=[OrderResponse.from_record(order) for order in orders],
    )


@app.get(
    "/api/orders/check-status",
    response_model=OrderStatusCheckResponse,
    tags=["Orders"],
)
async def check_order_status(
    order_id: Optional[str] = Query(None, alias="orderId"),
    contact: Optional[str] = Query(None),
    order_service: OrderService = Depends(get_order_service),
) -> OrderStatusCheckResponse:
    """Current status of an order, by id or by the customer's contact number."""
    try:
        order = await order_service.check_status(order_id=order_id, contact_number=contact)
    except OrderServiceError as e:
        raise http_error(e)

    if order is None:
        return OrderStatusCheckResponse(order=None)

    return OrderStatusCheckResponse(
        order=OrderStatusSummary(
            id=order.id,
            daily_order_id=order.daily_order_id,
            status=order.status.value,
            order_type=order.order_type.value,
            customer_name=order.customer_name,
            total=order.total,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
    )


@app.get(
    "/api/orders/next-order-id",
    response_model=NextOrderIdResponse,
    tags=["Orders"],
)
async def next_order_id(
    order_service: OrderService = Depends(get_order_service),
) -> NextOrderIdResponse:
    """Daily order number the next order will get."""
    daily_order_id, order_date = await order_service.next_daily_order_id()
    return NextOrderIdResponse(order_id=daily_order_id, order_date=order_date)


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    order_service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get a specific order by ID."""
    try:
        order = await order_service.get_order(order_id)
    except OrderServiceError as e:
        raise http_error(e)

    return OrderResponse.from_record(order)


@app.put(
    "/api/orders/{order_id}",
    response_model=StatusUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    update: Optional[OrderStatusUpdate] = None,
    order_service: OrderService = Depends(get_order_service),
) -> StatusUpdateResponse:
    """
    Change an order's status and push the change to every client
    subscribed by order id or by contact number.

    The update succeeds even if no client is listening or the push fails.
    """
    try:
        status = parse_status(update.status if update else None)
        order, delivered = await order_service.update_status(order_id, status)
    except OrderServiceError as e:
        raise http_error(e)

    return StatusUpdateResponse(
        success=True,
        message="Order status updated successfully",
        order_id=order.id,
        status=order.status.value,
        subscribers_notified=delivered,
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

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
