from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field, Relationship

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from vitrine.models.product.product import Product


class CartItem(SQLModel, table=True):
    __tablename__ = "tb_cart_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Carrinho de visitante: dono é o X-Session-Id
    session_id: str = Field(index=True)
    product_id: int = Field(foreign_key="tb_product.id")

    quantity: int = Field(default=1, ge=1)

    product: Optional["Product"] = Relationship()

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def subtotal(self) -> float:
        price = self.product.price if self.product else 0.0
        return self.quantity * price
