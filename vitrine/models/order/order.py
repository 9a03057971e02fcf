from datetime import datetime, timezone
from typing import Optional, List, TYPE_CHECKING
import secrets
from sqlmodel import Field, Relationship, SQLModel
from sqlalchemy import Column, Enum

from vitrine.enums.order_status import OrderStatus
from vitrine.enums.payment_status import PaymentStatus

if TYPE_CHECKING:
    from vitrine.models.order.order_item import OrderItem

ORDER_NUMBER_PREFIX = "LOJA-"


def generate_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}{secrets.token_hex(6)}"


class Order(SQLModel, table=True):
    __tablename__ = "tb_order"

    id: Optional[int] = Field(default=None, primary_key=True)

    order_number: str = Field(default_factory=generate_order_number, index=True, unique=True)
    # Token da transação no gateway; vira o identificador externo do pedido
    transaction_token: Optional[str] = Field(default=None, index=True, unique=True)
    session_id: Optional[str] = Field(default=None, index=True)

    customer_name: str
    customer_email: str
    cpf: str
    phone: str

    cep: str
    rua: str
    numero: str
    complemento: Optional[str] = None
    bairro: str
    cidade: str
    estado: str

    payment_method: str = Field(default="pix")
    total_amount: float = Field(default=0.0)

    status: OrderStatus = Field(default=OrderStatus.PENDING, sa_column=Column(Enum(OrderStatus), nullable=False))
    payment_status: PaymentStatus = Field(default=PaymentStatus.UNPAID, sa_column=Column(Enum(PaymentStatus), nullable=False))

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    items: List["OrderItem"] = Relationship(back_populates="order")

    @property
    def shipping_address(self) -> str:
        lines = [
            f"Rua: {self.rua}, N°: {self.numero}" + (f" - {self.complemento}" if self.complemento else ""),
            f"Bairro: {self.bairro}",
            f"Cidade: {self.cidade} - {self.estado}",
            f"CEP: {self.cep}",
        ]
        return "\n".join(lines)
