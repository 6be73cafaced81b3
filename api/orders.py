from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from dependencies import get_current_admin, get_storage
from log_utils import log
import schemas

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", response_model=schemas.Order, status_code=status.HTTP_201_CREATED)
async def create_order(order: schemas.OrderCreate, storage=Depends(get_storage)):
    db_order = await storage.create_order(order.model_dump())
    log(f"order {db_order['id']} placed: {len(db_order['items'])} items, total {db_order['total_amount']}")
    return db_order


# ========== PROTECTED ORDER ENDPOINTS (Admin Only) ==========
@router.get("/orders", response_model=List[schemas.Order])
async def read_orders(storage=Depends(get_storage), current_admin=Depends(get_current_admin)):
    return await storage.get_all_orders()


@router.get("/orders/{order_id}", response_model=schemas.Order)
async def read_order(order_id: int, storage=Depends(get_storage), current_admin=Depends(get_current_admin)):
    db_order = await storage.get_order(order_id)
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return db_order


@router.put("/orders/{order_id}/status", response_model=schemas.Order)
async def update_order_status(
    order_id: int,
    status_update: schemas.OrderStatusUpdate,
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    """Overwrite the order status; any status string is accepted."""
    db_order = await storage.update_order_status(order_id, status_update.status)
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    log(f"order {order_id} -> {status_update.status} by {current_admin['username']}")
    return db_order
