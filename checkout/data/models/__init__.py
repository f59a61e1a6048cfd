# import every model so SQLAlchemy registers it on Base.metadata

from checkout.data.models.user import UserModel
from checkout.data.models.product import ProductModel
from checkout.data.models.material import MaterialModel
from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.data.models.address import AddressModel
from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.data.models.order_address import OrderAddressModel
from checkout.data.models.payment import PaymentModel
from checkout.data.models.invoice import InvoiceModel
from checkout.data.models.notification import NotificationModel
from checkout.data.models.audit_log import AuditLogModel

__all__ = [
    "UserModel",
    "ProductModel",
    "MaterialModel",
    "CartModel",
    "CartItemModel",
    "AddressModel",
    "OrderModel",
    "OrderItemModel",
    "OrderAddressModel",
    "PaymentModel",
    "InvoiceModel",
    "NotificationModel",
    "AuditLogModel",
]
