from .db import db
from .user import User, Role
from .college import College
from .department import Department
from .student import Student
from .teacher import Teacher
from .infrastructure import Infrastructure
from .audit_log import AuditLog
from .security_event import SecurityEvent
from .ip_rate_limit import IpRateLimit
from .product import Product, ProductVariation
from .catalog_option import CatalogOption, OptionKind, VariationOptionPrice, HangingPrice, AcrylicCoverPrice
from .shipping_type import ShippingType
from .address import Address
from .cart_item import CartItem
from .order import Order, OrderItem, OrderAddress
from .payment import Payment
