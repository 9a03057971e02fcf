from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import Column, Enum
from sqlmodel import Field, Relationship, SQLModel

from typing import TYPE_CHECKING

from vitrine.enums.transaction_status import TransactionStatus

if TYPE_CHECKING:
    from vitrine.models.order.order import Order


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Payment(SQLModel, table=True):
    __tablename__ = "tb_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="tb_order.id")
    method: str = Field(default="pix")
    amount: float = Field(default=0.0)
    transaction_code: Optional[str] = Field(default=None, index=True)

    status: TransactionStatus = Field(default=TransactionStatus.PENDING, sa_column=Column(Enum(TransactionStatus), nullable=False))

    # PIX copia e cola e URL/imagem do QR Code
    qr_code: Optional[str] = Field(default=None)
    qr_code_url: Optional[str] = Field(default=None)

    paid_at: Optional[datetime] = Field(default=None)
    expires_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = Field(default=None)

    order: Optional["Order"] = Relationship()

    @property
    def expires_at_utc(self) -> Optional[datetime]:
        return as_utc(self.expires_at)

    @property
    def paid_at_utc(self) -> Optional[datetime]:
        return as_utc(self.paid_at)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        expires_at = self.expires_at_utc
        if expires_at is None:
            return False
        return expires_at < (now or datetime.now(timezone.utc))
