#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.pending_verification import PendingVerificationModel
from storefront.data.models.product import ProductModel, SizeModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.setting import SettingModel

__all__ = [
    "UserModel",
    "PendingVerificationModel",
    "ProductModel",
    "SizeModel",
    "CartModel",
    "CartItemModel",
    "AddressModel",
    "OrderModel",
    "OrderItemModel",
    "SettingModel",
]
