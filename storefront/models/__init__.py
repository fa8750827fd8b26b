from .user import User
from .product import Product
from .cart import CartItem
from .coupon import Coupon
