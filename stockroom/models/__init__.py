from stockroom.models.identity import Identity, Profile, UserRole
from stockroom.models.warehouse import Warehouse
from stockroom.models.catalog import Category, Product
from stockroom.models.documents import Delivery, DeliveryLine, Receipt, ReceiptLine
from stockroom.models.stock import StockMovement
