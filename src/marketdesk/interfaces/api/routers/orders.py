# src/marketdesk/interfaces/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, status

from marketdesk.application.services.order_service import OrderService
from marketdesk.domain.entities import OrderStatus, Principal
from marketdesk.domain.errors import InvalidState
from marketdesk.interfaces.api import metrics
from marketdesk.interfaces.api.deps import get_current_principal, get_order_service
from marketdesk.interfaces.api.schemas import OptionOrderIn, OrderOut, dump, envelope

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/option", status_code=status.HTTP_201_CREATED)
def open_option_order(
    body: OptionOrderIn,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
):
    order = orders.open_option_order(
        user_id=principal.user_id,
        symbol=body.symbol,
        amount=body.amount,
        duration_seconds=body.duration,
        ror=body.ror,
        entry_price=body.entry_price,
    )
    metrics.ORDERS_OPENED.inc()
    return envelope(dump(OrderOut.model_validate(order)), "Option order created")


@router.post("/{order_id}/complete")
def complete_option_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
):
    try:
        order, new_balance = orders.settle_option_order(principal.user_id, order_id)
    except InvalidState:
        metrics.SETTLEMENT_CONFLICTS.inc()
        raise
    metrics.ORDERS_SETTLED.inc()
    return envelope(
        {
            "order": dump(OrderOut.model_validate(order)),
            "profit": float(order.profit),
            "newBalance": float(new_balance),
        },
        "Order completed",
    )


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
):
    items = orders.list_orders_for(principal.user_id, status)
    return envelope([dump(OrderOut.model_validate(o)) for o in items])


@router.get("/{order_id}")
def get_order(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
    orders: OrderService = Depends(get_order_service),
):
    return envelope(dump(OrderOut.model_validate(orders.get_order(principal.user_id, order_id))))
