#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from bistro.data.models.user import UserModel
from bistro.data.models.item import ItemModel
from bistro.data.models.cart_item import CartItemModel
from bistro.data.models.order import OrderModel
from bistro.data.models.order_line import OrderLineModel

__all__ = ["UserModel", "ItemModel", "CartItemModel", "OrderModel", "OrderLineModel"]
