from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, SQLModel


class Product(SQLModel, table=True):
    """Somente o necessário para montar o snapshot das linhas do carrinho."""
    __tablename__ = "tb_product"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    price: float = Field(default=0.0, ge=0)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
