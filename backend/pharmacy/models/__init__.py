from .inventory import Item
from .sales import Sale

__all__ = [
    'Item',
    'Sale',
]
