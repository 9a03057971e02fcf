import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from vitrine.core.exceptions.app_exception import AppHttpException
from vitrine.core.middlewares.session import get_session_id
from vitrine.database.connection import get_session
from vitrine.models.cart.cart_item import CartItem
from vitrine.models.product.product import Product
from vitrine.schemas.cart.cart_item import CartItemCreate, CartItemUpdate

db_session = get_session


def serialize_cart_item(item: CartItem) -> dict:
    product = item.product
    return {
        "id": item.id,
        "productId": item.product_id,
        "quantity": item.quantity,
        "product": {
            "id": product.id,
            "name": product.name,
            "price": f"{product.price:.2f}",
        },
    }


class CartRouter(APIRouter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.add_api_route("/api/cart", self.get_cart, methods=["GET"], response_model=list)
        self.add_api_route("/api/cart", self.add_item, methods=["POST"], status_code=status.HTTP_201_CREATED, response_model=dict)
        self.add_api_route("/api/cart", self.clear_cart, methods=["DELETE"], status_code=status.HTTP_204_NO_CONTENT)
        self.add_api_route("/api/cart/{item_id}", self.update_item, methods=["PUT"], response_model=dict)
        self.add_api_route("/api/cart/{item_id}", self.remove_item, methods=["DELETE"], status_code=status.HTTP_204_NO_CONTENT)

    def _get_item(self, session: Session, session_id: str, item_id: int) -> CartItem:
        item = session.exec(
            select(CartItem).where(
                CartItem.id == item_id,
                CartItem.session_id == session_id,
            )
        ).first()
        if not item:
            raise AppHttpException(status_code=status.HTTP_404_NOT_FOUND, detail="Item não encontrado no carrinho")
        return item

    def get_cart(self, session_id: str = Depends(get_session_id), session: Session = Depends(db_session)):
        items = session.exec(
            select(CartItem).where(CartItem.session_id == session_id).order_by(CartItem.id)
        ).all()
        return [serialize_cart_item(item) for item in items]

    def add_item(self, item_data: CartItemCreate, session_id: str = Depends(get_session_id), session: Session = Depends(db_session)):
        product = session.get(Product, item_data.product_id)
        if not product or not product.is_active:
            raise AppHttpException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto inválido ou inativo")

        # Verifica se já existe um item igual
        existing_item = session.exec(
            select(CartItem).where(
                CartItem.session_id == session_id,
                CartItem.product_id == item_data.product_id,
            )
        ).first()

        if existing_item:
            existing_item.quantity += item_data.quantity
            existing_item.updated_at = datetime.now(timezone.utc)
            session.add(existing_item)
            session.commit()
            session.refresh(existing_item)
            return serialize_cart_item(existing_item)

        new_item = CartItem(
            session_id=session_id,
            product_id=product.id,
            quantity=item_data.quantity,
        )
        session.add(new_item)
        session.commit()
        session.refresh(new_item)

        logging.info(f"CARRINHO >>> Item adicionado ({session_id}): produto {new_item.product_id} x{new_item.quantity}")
        return serialize_cart_item(new_item)

    def update_item(self, item_id: int, update_data: CartItemUpdate, session_id: str = Depends(get_session_id), session: Session = Depends(db_session)):
        if update_data.quantity < 1:
            raise AppHttpException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantidade inválida")

        item = self._get_item(session, session_id, item_id)
        item.quantity = update_data.quantity
        item.updated_at = datetime.now(timezone.utc)
        session.add(item)
        session.commit()
        session.refresh(item)
        return serialize_cart_item(item)

    def remove_item(self, item_id: int, session_id: str = Depends(get_session_id), session: Session = Depends(db_session)):
        item = self._get_item(session, session_id, item_id)
        session.delete(item)
        session.commit()

    def clear_cart(self, session_id: str = Depends(get_session_id), session: Session = Depends(db_session)):
        items = session.exec(select(CartItem).where(CartItem.session_id == session_id)).all()
        for item in items:
            session.delete(item)
        session.commit()
        logging.info(f"CARRINHO >>> {len(items)} itens removidos do carrinho {session_id}")
