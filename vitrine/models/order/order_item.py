from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, Relationship, SQLModel

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vitrine.models.order.order import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "tb_order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="tb_order.id")
    product_id: Optional[int] = Field(default=None)
    # Snapshot do produto no momento da compra
    name: str
    quantity: int = Field(default=1)
    unit_price: float = Field(default=0.0)
    total_price: float = Field(default=0.0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    order: "Order" = Relationship(back_populates="items")
