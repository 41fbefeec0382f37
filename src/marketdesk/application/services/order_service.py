# src/marketdesk/application/services/order_service.py
"""
OrderService - the option-order settlement engine.

An option order has a two-phase life:

1. `open_option_order` checks the stake against the balance and persists an
   ACTIVE order maturing at `start_date + duration`. The stake is checked,
   not held: several open orders may together exceed the balance.
2. `settle_option_order` flips the order to COMPLETED and credits
   `amount * ror / 100` in one transaction. The flip is a conditional update
   on `status = ACTIVE`, so of any number of concurrent or repeated calls
   exactly one credits the balance and the others fail with `InvalidState`.

Settlement is caller-triggered; nothing in this service watches `end_date`.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from marketdesk.config import settings
from marketdesk.domain.entities import OrderStatus, OrderType
from marketdesk.domain.errors import (
    Forbidden,
    InsufficientBalance,
    InvalidState,
    OrderNotFound,
    UserNotFound,
)
from marketdesk.domain.value_objects import OptionTerms, compute_option_profit
from marketdesk.infrastructure.db.models import Order
from marketdesk.infrastructure.db.models.base import utcnow
from marketdesk.infrastructure.db.repository import OrderRepository, UserRepository
from marketdesk.infrastructure.db.uow import SessionScope, session_scope as default_session_scope

log = logging.getLogger(__name__)


class OrderService:
    def __init__(self, session_scope: Optional[SessionScope] = None, currency: Optional[str] = None):
        self.session_scope = session_scope or default_session_scope
        self.currency = currency or settings.DEFAULT_CURRENCY

    def open_option_order(
        self,
        user_id: str,
        symbol: Any,
        amount: Any,
        duration_seconds: Any,
        ror: Any,
        entry_price: Any,
    ) -> Order:
        terms = OptionTerms.parse(symbol, amount, duration_seconds, ror, entry_price)

        with self.session_scope() as session:
            user = UserRepository(session).find_active(user_id)
            if not user:
                raise UserNotFound()

            balance = Decimal(user.account_balance)
            if balance < terms.amount.value:
                log.info(f"Order rejected for user {user_id}: balance {balance} < stake {terms.amount.value}")
                raise InsufficientBalance()

            start = utcnow()
            order = OrderRepository(session).add(
                user_id=user_id,
                order_type=OrderType.OPTION,
                status=OrderStatus.ACTIVE,
                symbol=terms.symbol.value,
                amount=terms.amount.quantized(),
                currency=self.currency,
                ror=terms.ror.percent,
                entry_price=terms.entry_price,
                period_seconds=terms.duration_seconds,
                start_date=start,
                end_date=start + timedelta(seconds=terms.duration_seconds),
                description=(
                    f"Option order: {terms.symbol.value} - {terms.ror.percent}% ROR "
                    f"for {terms.duration_seconds}s"
                ),
            )
            log.info(f"Opened option order {order.id} for user {user_id}: {order.symbol} stake={order.amount}")
            return order

    def settle_option_order(self, requesting_user_id: str, order_id: str) -> Tuple[Order, Decimal]:
        """
        Settle an ACTIVE order. Returns the settled order and the owner's new balance.
        The state flip and the credit commit together or not at all.
        """
        with self.session_scope() as session:
            orders = OrderRepository(session)
            users = UserRepository(session)

            order = orders.get(order_id)
            if not order:
                raise OrderNotFound()
            if order.user_id != requesting_user_id:
                raise Forbidden("You do not own this order")
            if order.status != OrderStatus.ACTIVE:
                raise InvalidState(f"Order is already {order.status.value}")

            profit = compute_option_profit(Decimal(order.amount), Decimal(order.ror))
            settled_at = utcnow()

            if orders.complete_if_active(order_id, profit, settled_at) != 1:
                # Lost the race against a concurrent settle.
                log.warning(f"Settlement conflict on order {order_id}: already settled")
                raise InvalidState("Order has already been settled")

            if users.credit_balance(requesting_user_id, profit) != 1:
                # Rolls back the state flip with the rest of the unit of work.
                raise UserNotFound()

            session.refresh(order)
            new_balance = Decimal(users.get_balance(requesting_user_id))
            log.info(f"Settled order {order_id}: profit={profit} new_balance={new_balance}")
            return order, new_balance

    def get_order(self, user_id: str, order_id: str) -> Order:
        with self.session_scope() as session:
            order = OrderRepository(session).get(order_id)
            if not order:
                raise OrderNotFound()
            if order.user_id != user_id:
                raise Forbidden("You do not own this order")
            return order

    def list_orders_for(self, user_id: str, status: Optional[OrderStatus] = None) -> List[Order]:
        with self.session_scope() as session:
            return OrderRepository(session).list_for_user(user_id, status)
