# Import models so that SQLAlchemy metadata includes them on app startup
from .lifecycle import ActiveState  # noqa: F401
from .user import User  # noqa: F401
from .brand import Brand  # noqa: F401
from .category import Category  # noqa: F401
from .product import Product, ProductCategory  # noqa: F401
