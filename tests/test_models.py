import pytest
from sqlalchemy.exc import IntegrityError

from models.brand import Brand
from models.category import Category
from models.lifecycle import ActiveState
from models.product import Product, ProductCategory
from models.user import User


class TestUser:
    """Test cases for User model"""

    def test_user_creation(self, db):
        """Test creating a user with all fields"""
        user = User(name="Jane", email="jane@example.com", password="hash", role="admin", pin="1234")
        db.add(user)
        db.commit()

        assert user.id is not None
        assert user.created_at is not None
        assert user.is_admin is True

    def test_non_admin_role(self):
        """Test is_admin for other roles"""
        assert User(name="x", email="x@y.z", password="p", role="user").is_admin is False
        assert User(name="x", email="x@y.z", password="p").is_admin is False

    def test_email_unique(self, db):
        """Test email uniqueness constraint"""
        db.add(User(name="A", email="dup@example.com", password="p"))
        db.commit()
        db.add(User(name="B", email="dup@example.com", password="p"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestBrandAndCategory:
    """Test cases for Brand and Category models"""

    def test_brand_defaults_active(self, db):
        """Test new brands are active with no image"""
        brand = Brand(name="Acme", slug="acme")
        db.add(brand)
        db.commit()

        assert brand.is_active == ActiveState.ACTIVE
        assert brand.image_url is None
        assert brand.is_visible_web == 1

    def test_brand_slug_unique(self, db):
        """Test brand slug uniqueness constraint"""
        db.add(Brand(name="Acme", slug="acme"))
        db.commit()
        db.add(Brand(name="Acme 2", slug="acme"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_category_parent(self, db, make_category):
        """Test categories reference their parent"""
        root = make_category("Tools")
        child = make_category("Hammers", parent_id=root.id)

        assert child.parent_id == root.id
        assert root.parent_id is None
        assert child.is_active == ActiveState.ACTIVE

    def test_category_unknown_parent_rejected(self, db):
        """Test the parent foreign key is enforced"""
        db.add(Category(name="Lost", slug="lost", parent_id=999))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestProduct:
    """Test cases for Product model"""

    def test_product_defaults(self, db):
        """Test stock, cost and visibility defaults"""
        product = Product(name="Widget", barcode="123")
        db.add(product)
        db.commit()
        db.refresh(product)

        assert product.stock_quantity == 0
        assert float(product.cost) == 0
        assert product.en_mercadolibre == 0
        assert product.visible_ecommerce == 1
        assert product.image is None
        assert product.images is None

    def test_image_column_name(self):
        """Test the image attribute maps to the legacy image_512 column"""
        assert "image_512" in Product.__table__.c
        assert Product.__mapper__.attrs["image"].columns[0].name == "image_512"

    def test_barcode_unique(self, db):
        """Test barcode uniqueness constraint"""
        db.add(Product(name="A", barcode="123"))
        db.commit()
        db.add(Product(name="B", barcode="123"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_missing_barcodes_do_not_collide(self, db):
        """Test several products without barcode can coexist"""
        db.add_all([Product(name="A"), Product(name="B")])
        db.commit()

        assert db.query(Product).count() == 2

    def test_gallery_json(self, db, make_product):
        """Test the image gallery round-trips as a JSON list"""
        product = make_product(name="A", barcode="1", images=["https://x/1.png", "https://x/2.png"])
        db.expire_all()

        assert db.get(Product, product.id).images == ["https://x/1.png", "https://x/2.png"]

    def test_association_is_unique(self, db, make_product, make_category):
        """Test a product/category pair is stored once"""
        product = make_product(name="A", barcode="1")
        category = make_category("Tools")
        db.add(ProductCategory(product_id=product.id, category_id=category.id))
        db.commit()
        db.expunge_all()
        db.add(ProductCategory(product_id=product.id, category_id=category.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
