import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from vitrine.core.exceptions.checkout import ValidationError
from vitrine.storefront.api import StorefrontApi


@dataclass(frozen=True)
class CartLine:
    id: int
    product_id: int
    quantity: int
    name: str
    price: Decimal

    @classmethod
    def from_api(cls, data: dict) -> "CartLine":
        product = data.get("product") or {}
        return cls(
            id=data["id"],
            product_id=data["productId"],
            quantity=int(data["quantity"]),
            name=product.get("name", ""),
            price=Decimal(str(product.get("price", "0"))),
        )

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def as_payment_item(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "product": {"name": self.name, "price": float(self.price)},
        }


class CartStore:
    """Espelho local do carrinho da sessão; cada alteração recarrega do servidor."""

    def __init__(self, api: StorefrontApi):
        self.api = api
        self.lines: List[CartLine] = []

    async def load(self) -> List[CartLine]:
        data = await self.api.get_cart()
        self.lines = [CartLine.from_api(item) for item in data]
        return self.lines

    async def add(self, product_id: int, quantity: int = 1) -> List[CartLine]:
        if quantity < 1:
            raise ValidationError("Quantidade inválida")
        await self.api.add_to_cart(product_id, quantity)
        logging.info(f"CARRINHO >>> Produto {product_id} adicionado (x{quantity})")
        return await self.load()

    async def update(self, line_id: int, quantity: int) -> List[CartLine]:
        if quantity < 1:
            raise ValidationError("Quantidade inválida")
        await self.api.update_cart_item(line_id, quantity)
        return await self.load()

    async def remove(self, line_id: int) -> List[CartLine]:
        await self.api.remove_cart_item(line_id)
        return await self.load()

    async def clear(self) -> None:
        await self.api.clear_cart()
        self.lines = []
        logging.info("CARRINHO >>> Carrinho esvaziado")

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0"))

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def payment_items(self) -> List[dict]:
        return [line.as_payment_item() for line in self.lines]
