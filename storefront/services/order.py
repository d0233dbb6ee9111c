from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime, timedelta, timezone
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from storefront.core.logging_config import get_logger
from storefront.models.order import Order, OrderItem, ShippingAddress

log = get_logger(__name__)


@dataclass(frozen=True)
class NewOrderLine:
    product_id: int
    quantity: int
    price_cents: int


class OrderService:
    """The order ledger: created once at checkout, flipped to paid once."""

    def __init__(self, session: Session):
        self.session = session

    def create_pending_order(self, user_id: int, address: ShippingAddress, lines: List[NewOrderLine]) -> Order:
        """Write the order and its lines in one transaction."""
        order = Order(
            user_id=user_id,
            paid=False,
            full_name=address.full_name,
            street=address.street,
            city=address.city,
            zip=address.zip,
            country=address.country,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self.session.add(order)
            # Assigns order.id without committing
            self.session.flush()
            for line in lines:
                self.session.add(OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price_cents=line.price_cents,
                ))
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            log.exception(f"Could not persist order for user {user_id}")
            raise

        self.session.refresh(order)
        log.info(f"[Order: {order.id}] Pending order created for user {user_id} with {len(lines)} line(s)")
        return order

    def mark_paid(self, order_id: int) -> bool:
        """Flip paid false -> true. Returns True only for the call that did it."""
        result = self.session.exec(
            update(Order)
            .where(Order.id == order_id, Order.paid == False)  # noqa: E712
            .values(paid=True, paid_at=datetime.now(timezone.utc))
        )
        self.session.commit()
        return result.rowcount == 1

    def get_order_by_id(self, order_id: int) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def get_user_orders(self, user_id: int) -> List[Order]:
        return self.session.exec(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
        ).all()

    def get_stale_pending_orders(self, older_than: timedelta) -> List[Order]:
        """Unpaid orders created before now - older_than, oldest first."""
        cutoff = datetime.now(timezone.utc) - older_than
        return self.session.exec(
            select(Order)
            .where(Order.paid == False, Order.created_at < cutoff)  # noqa: E712
            .order_by(Order.created_at)
        ).all()
