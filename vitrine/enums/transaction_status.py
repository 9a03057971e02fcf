from enum import Enum

# Estado local da transação junto ao gateway
class TransactionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELED = "canceled"
    EXPIRED = "expired"
