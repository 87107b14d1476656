"""Order queue API endpoints."""
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidStatusTransitionError
from app.db.database import get_db
from app.db.models import Order
from app.services.ordering.models import OrderDraft, OrderLine
from app.services.ordering.pricing import calculate_pricing
from app.services.ordering.status import OrderStatus
from app.services.persistence.orders import OrderPersistenceService


router = APIRouter()
logger = logging.getLogger(__name__)


class OrderResponse(BaseModel):
    """Order response model."""
    id: str
    order_number: int
    conversation_id: Optional[str] = None
    customer_name: str
    items: List[dict] = []
    subtotal: float
    tax: float
    total: float
    status: OrderStatus
    cancel_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderCreateRequest(BaseModel):
    """Staff-entered order."""
    customer_name: Optional[str] = None
    items: List[OrderLine] = []


class OrderStatusUpdate(BaseModel):
    """Order status change request."""
    status: OrderStatus
    cancel_reason: Optional[str] = None


def order_response(order: Order) -> OrderResponse:
    """Convert an order row to its API model."""
    return OrderResponse.model_validate(order)


@router.get("/api/orders", response_model=List[OrderResponse])
async def list_orders(
    request: Request,
    status: Optional[OrderStatus] = None,
    created_from: Optional[datetime] = Query(None, alias="from"),
    created_to: Optional[datetime] = Query(None, alias="to"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """List orders, newest first, optionally filtered by status and creation time."""
    logger.info(
        f"[ORDERS] List requested - status: {status or 'any'}, from: {created_from}, to: {created_to}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        orders = await OrderPersistenceService(db).list_orders(
            status=status, created_from=created_from, created_to=created_to, limit=limit
        )
    except Exception as e:
        logger.error(
            f"[ORDERS] Error listing orders - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to fetch orders")

    logger.info(f"[ORDERS] Found {len(orders)} orders")
    return [order_response(order) for order in orders]


@router.post("/api/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    payload: OrderCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create an order directly (staff entry). Pricing is computed server-side."""
    if not payload.items:
        raise HTTPException(status_code=400, detail="Order must contain at least one item")

    draft = OrderDraft(confirmed=True, customer_name=payload.customer_name, items=payload.items)
    pricing = calculate_pricing(draft.items)
    try:
        order, _ = await OrderPersistenceService(db).insert_order(draft, pricing)
    except Exception as e:
        logger.error(
            f"[ORDERS] Error creating order - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to create order")

    logger.info(f"[ORDERS] Order #{order.order_number} created for {order.customer_name}")
    return order_response(order)


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    """Get a single order."""
    order = await OrderPersistenceService(db).get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return order_response(order)


@router.patch("/api/orders/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    update: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Advance or cancel an order."""
    logger.info(f"[ORDERS] Status update requested - Order: {order_id}, Status: {update.status}")
    try:
        order = await OrderPersistenceService(db).update_status(
            order_id, update.status, reason=update.cancel_reason
        )
    except InvalidStatusTransitionError as e:
        logger.warning(f"[ORDERS] Rejected status update - Order: {order_id}, {e.message}")
        raise HTTPException(status_code=409, detail=e.message)
    except Exception as e:
        logger.error(
            f"[ORDERS] Error updating order {order_id} - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to update order")

    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return order_response(order)
