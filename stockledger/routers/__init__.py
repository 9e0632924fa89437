# stockledger/routers/__init__.py

from .inventory.inventory_level_router import router as inventory_level_router
from .inventory.inventory_transaction_router import router as inventory_transaction_router

from .catalog.category_router import router as category_router


__all__ = [
"inventory_level_router",
"inventory_transaction_router",

"category_router",
]
