"""Tests for ProductService."""
from decimal import Decimal
from itertools import count

import pytest

from app.exceptions import NotFoundError, ValidationError, format_validation_errors
from app.models.product import Product
from app.schemas.product import ProductRequest
from app.services.product_service import ProductService


def request_data(**overrides):
    data = {
        "name": "Paper Ream",
        "price": "4.50",
        "stockQuantity": 10,
        "lowStockThreshold": 5,
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(db_session):
    return ProductService(db_session)


class InMemoryProductRepository:
    """Dict-backed stand-in for ProductRepository; no database involved."""

    def __init__(self):
        self.rows = {}
        self.ids = count(1)

    def insert(self, product):
        product.id = next(self.ids)
        self.rows[product.id] = product
        return product

    def get_by_id(self, product_id):
        if product_id not in self.rows:
            raise NotFoundError(f"Product not found with id: {product_id}", resource_id=product_id)
        return self.rows[product_id]

    def get_all(self):
        return list(self.rows.values())

    def get_low_stock(self):
        return [p for p in self.rows.values() if p.is_low_stock]

    def update(self, product_id, product):
        self.rows[product_id] = product
        return product

    def delete(self, product_id):
        self.get_by_id(product_id)
        del self.rows[product_id]


class TestCreate:

    def test_above_threshold_is_not_low_stock(self, service):
        product = service.create(request_data(stockQuantity=10, lowStockThreshold=5))

        assert product.is_low_stock is False
        assert product.id is not None
        assert product.created_at is not None
        assert product.updated_at is not None

    def test_equal_to_threshold_is_low_stock(self, service):
        product = service.create(request_data(stockQuantity=5, lowStockThreshold=5))

        assert product.is_low_stock is True

    def test_threshold_defaults_to_five(self, service):
        data = request_data(stockQuantity=5)
        del data["lowStockThreshold"]

        product = service.create(data)

        assert product.low_stock_threshold == 5
        assert product.is_low_stock is True

    def test_null_threshold_defaults_to_five(self, service):
        product = service.create(request_data(stockQuantity=6, lowStockThreshold=None))

        assert product.low_stock_threshold == 5
        assert product.is_low_stock is False

    def test_accepts_schema_instance(self, service):
        payload = ProductRequest(name="Toner", price=Decimal("59.00"), stock_quantity=3)

        product = service.create(payload)

        assert product.name == "Toner"
        assert product.is_low_stock is True

    def test_client_cannot_set_flag(self, service):
        product = service.create(request_data(stockQuantity=100, isLowStock=True, id=77))

        assert product.is_low_stock is False
        assert product.id != 77

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"name": "A"}, "name"),
            ({"name": "x" * 101}, "name"),
            ({"name": "   "}, "name"),
            ({"price": 0}, "price"),
            ({"price": -1}, "price"),
            ({"stockQuantity": -1}, "stockQuantity"),
            ({"lowStockThreshold": 0}, "lowStockThreshold"),
        ],
    )
    def test_invalid_input_persists_nothing(self, service, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            service.create(request_data(**overrides))

        assert exc_info.value.details.startswith(f"{field}: ")
        assert service.get_all() == []

    def test_missing_required_fields(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create({"name": "No Price"})

        assert "price: Field required" in exc_info.value.details
        assert "stockQuantity: Field required" in exc_info.value.details

    def test_invalid_schema_instance_is_revalidated(self, service):
        payload = ProductRequest(name="Valid", price=Decimal("1.00"), stock_quantity=1)
        payload.stock_quantity = -3

        with pytest.raises(ValidationError):
            service.create(payload)


class TestRead:

    def test_round_trip(self, service):
        created = service.create(request_data(description="80 gsm", sku="PR-80", category="Office"))

        fetched = service.get_by_id(created.id)

        assert fetched == created

    def test_get_by_id_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.get_by_id(12345)

    def test_get_all(self, service):
        service.create(request_data(name="First"))
        service.create(request_data(name="Second"))

        assert [p.name for p in service.get_all()] == ["First", "Second"]

    def test_get_all_filters(self, service):
        service.create(request_data(name="Blue Pen", category="Writing"))
        service.create(request_data(name="Blue Folder", category="Filing"))
        service.create(request_data(name="Red Pen", category="writing"))

        assert [p.name for p in service.get_all(name="blue")] == ["Blue Pen", "Blue Folder"]
        assert [p.name for p in service.get_all(category="WRITING")] == ["Blue Pen", "Red Pen"]
        assert [p.name for p in service.get_all(name="pen", category="writing")] == ["Blue Pen", "Red Pen"]

    def test_get_by_sku(self, service):
        service.create(request_data(sku="SKU-42"))

        assert service.get_by_sku("SKU-42").sku == "SKU-42"
        with pytest.raises(NotFoundError):
            service.get_by_sku("SKU-43")


class TestUpdate:

    def test_dropping_stock_sets_flag(self, service):
        created = service.create(request_data(stockQuantity=10, lowStockThreshold=5))

        updated = service.update(created.id, request_data(stockQuantity=2, lowStockThreshold=5))

        assert updated.is_low_stock is True
        assert updated.stock_quantity == 2
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    def test_raising_stock_clears_flag(self, service):
        created = service.create(request_data(stockQuantity=1))

        updated = service.update(created.id, request_data(stockQuantity=40))

        assert updated.is_low_stock is False

    def test_raising_threshold_sets_flag(self, service):
        created = service.create(request_data(stockQuantity=10, lowStockThreshold=5))

        updated = service.update(created.id, request_data(stockQuantity=10, lowStockThreshold=10))

        assert updated.is_low_stock is True

    def test_full_replacement_clears_omitted_optionals(self, service):
        created = service.create(
            request_data(description="Old", sku="OLD", category="Office", lowStockThreshold=8)
        )
        data = request_data(stockQuantity=6)
        del data["lowStockThreshold"]

        updated = service.update(created.id, data)

        assert updated.description is None
        assert updated.sku is None
        assert updated.category is None
        assert updated.low_stock_threshold == 5
        assert updated.is_low_stock is False

    def test_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.update(999, request_data())

        assert service.get_all() == []

    def test_invalid_input_leaves_record_unchanged(self, service):
        created = service.create(request_data(name="Keep Me"))

        with pytest.raises(ValidationError):
            service.update(created.id, request_data(name="K", price=0))

        assert service.get_by_id(created.id) == created


class TestDelete:

    def test_delete_twice(self, service):
        created = service.create(request_data())

        service.delete(created.id)
        with pytest.raises(NotFoundError):
            service.delete(created.id)

    def test_delete_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.delete(31337)


class TestLowStock:

    def test_never_stale_after_writes(self, service):
        a = service.create(request_data(name="Alpha", stockQuantity=10))
        b = service.create(request_data(name="Bravo", stockQuantity=3))
        service.create(request_data(name="Charlie", stockQuantity=5))

        assert {p.name for p in service.get_low_stock()} == {"Bravo", "Charlie"}

        service.update(a.id, request_data(name="Alpha", stockQuantity=0))
        service.update(b.id, request_data(name="Bravo", stockQuantity=30))

        assert {p.name for p in service.get_low_stock()} == {"Alpha", "Charlie"}

        service.delete(a.id)

        assert {p.name for p in service.get_low_stock()} == {"Charlie"}

    def test_flag_matches_rule_for_every_record(self, service):
        for stock in range(0, 8):
            for threshold in (1, 3, 5):
                service.create(
                    request_data(name=f"Item {stock}-{threshold}", stockQuantity=stock, lowStockThreshold=threshold)
                )

        for product in service.get_all():
            assert product.is_low_stock == (product.stock_quantity <= product.low_stock_threshold)


class TestWithoutDatabase:
    """The service only needs something shaped like ProductRepository."""

    def test_rule_applied_on_both_write_paths(self):
        service = ProductService(repository=InMemoryProductRepository())

        created = service.create(request_data(stockQuantity=10))
        assert created.is_low_stock is False

        updated = service.update(created.id, request_data(stockQuantity=2))
        assert updated.is_low_stock is True
        assert [p.id for p in service.get_low_stock()] == [created.id]

    def test_not_found_propagates(self):
        service = ProductService(repository=InMemoryProductRepository())

        with pytest.raises(NotFoundError):
            service.get_by_id(1)

    def test_requires_session_or_repository(self):
        with pytest.raises(ValueError):
            ProductService()


def test_stored_entity_flag_is_written_by_service(db_session):
    service = ProductService(db_session)
    created = service.create(request_data(stockQuantity=4))

    stored = db_session.get(Product, created.id)

    assert stored.is_low_stock is True


def test_price_is_rounded_not_rejected(service):
    product = service.create(request_data(price="19.999"))

    assert product.price == Decimal("20.00")


def test_blank_sku_does_not_conflict(service):
    service.create(request_data(name="First", sku=""))
    second = service.create(request_data(name="Second", sku=""))

    assert second.sku is None


def test_format_validation_errors_drops_request_location():
    errors = [
        {"loc": ("body", "price"), "msg": "Input should be greater than 0"},
        {"loc": ("path", "product_id"), "msg": "Input should be a valid integer"},
        {"loc": ("body",), "msg": "Field required"},
    ]

    assert format_validation_errors(errors) == (
        "price: Input should be greater than 0, "
        "product_id: Input should be a valid integer, "
        "body: Field required"
    )
