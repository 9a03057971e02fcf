# vitrine/models/__init__.py

from .product.product import Product
from .cart.cart_item import CartItem
from .order.order import Order
from .order.order_item import OrderItem
from .payment.payment import Payment
