from .tenancy import Gym
from .catalog import ProductCategory, Product, StockMovement
from .customers import Client
from .payments import PaymentMethod
from .sales import Sale, SaleItem, SaleActive, SaleDeleted

__all__ = [
    'Gym',
    'ProductCategory', 'Product', 'StockMovement',
    'Client',
    'PaymentMethod',
    'Sale', 'SaleItem', 'SaleActive', 'SaleDeleted',
]
