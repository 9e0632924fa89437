# Catalog
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.brand_models import Brand
from stockledger.models.catalog.category_models import Category
from stockledger.models.catalog.item_models import Item, ItemVariant

# Inventory
from stockledger.models.inventory.inventory_level_models import InventoryLevel
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
