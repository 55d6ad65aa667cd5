import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from main import app
from core.db import Base, _make_engine, get_db
from models.brand import Brand
from models.category import Category
from models.lifecycle import ActiveState
from models.product import Product, ProductCategory
from models.user import User
from security.password import hash_password
from security import jwt as jwt_utils
from services.storage import ImageStorage, get_image_storage


@pytest.fixture()
def db():
    """Fresh in-memory database per test, shared with the app through the override."""
    engine = _make_engine("sqlite+pysqlite:///:memory:")
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def _get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def cloud_storage():
    """Configured object storage; tests patch cloudinary.uploader calls."""
    storage = ImageStorage(cloud_name="demo", api_key="key", api_secret="secret")
    app.dependency_overrides[get_image_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_image_storage, None)


@pytest.fixture
def admin_user(db):
    user = User(
        name="Admin",
        email="admin@example.com",
        password=hash_password("secret123"),
        role="admin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_token(admin_user):
    """Generate a valid JWT token for the admin user."""
    return jwt_utils.create_access_token(admin_user.id, admin_user.email, admin_user.role)


@pytest.fixture
def auth_headers(auth_token):
    """Return authorization headers with valid token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def make_product(db):
    def _make(**kwargs):
        product = Product(**kwargs)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_category(db):
    def _make(name, parent_id=None, is_active=ActiveState.ACTIVE, **kwargs):
        kwargs.setdefault("slug", name.lower().replace(" ", "-"))
        category = Category(name=name, parent_id=parent_id, is_active=is_active, **kwargs)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_brand(db):
    def _make(name, **kwargs):
        kwargs.setdefault("slug", name.lower().replace(" ", "-"))
        brand = Brand(name=name, **kwargs)
        db.add(brand)
        db.commit()
        db.refresh(brand)
        return brand
    return _make


@pytest.fixture
def link(db):
    def _link(product, category):
        db.add(ProductCategory(product_id=product.id, category_id=category.id))
        db.commit()
    return _link
