import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError

from sweetshop.core.exceptions import (
    DuplicateNameError,
    InsufficientStockError,
    InvalidIdError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from sweetshop.core.scheduler import init_scheduler, low_stock_report_job, shutdown_scheduler
from sweetshop.repositories.sweet_repo import SweetRepository
from sweetshop.services.sweet_service import MAX_QUANTITY, SweetService, parse_sweet_id


def add(db, name="Kaju Katli", category="Barfi", price=25.0, quantity=10):
    return SweetService(db).add_sweet(name=name, category=category, price=price, quantity=quantity)


def concurrent_purchases(session_factory, sweet_id, quantity, buyers):
    """Lancer ``buyers`` achats simultanés, chacun avec sa propre session"""
    barrier = threading.Barrier(buyers)

    def buy():
        with session_factory() as db:
            barrier.wait()
            try:
                return SweetService(db).purchase_sweet(sweet_id, quantity)
            except (InsufficientStockError, OutOfStockError) as exc:
                return exc

    with ThreadPoolExecutor(max_workers=buyers) as pool:
        futures = [pool.submit(buy) for _ in range(buyers)]
        return [future.result() for future in futures]


class TestPurchase:

    def test_two_buyers_cannot_oversell(self, app, db):
        sweet = add(db, quantity=5)

        results = concurrent_purchases(app.state.session_factory, sweet.id, 3, buyers=2)

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert failures[0].available == 2
        assert SweetService(db).sweet_repo.get_current_quantity(sweet.id) == 2

    def test_many_buyers_sell_exactly_the_stock(self, app, db):
        sweet = add(db, quantity=5)

        results = concurrent_purchases(app.state.session_factory, sweet.id, 1, buyers=10)

        successes = [r for r in results if not isinstance(r, Exception)]
        assert len(successes) == 5
        assert all(isinstance(r, OutOfStockError) for r in results if isinstance(r, Exception))
        assert SweetService(db).sweet_repo.get_current_quantity(sweet.id) == 0

    def test_total_cost(self, db):
        sweet = add(db, price=2.5, quantity=10)

        result = SweetService(db).purchase_sweet(sweet.id, 4)

        assert result.total_cost == 10.0
        assert result.sweet.quantity == 6

    def test_validation_happens_before_lookup(self, db):
        with pytest.raises(ValidationError):
            SweetService(db).purchase_sweet("not-an-id", 0)

    def test_numeric_string_quantity(self, db):
        sweet = add(db, quantity=10)

        assert SweetService(db).purchase_sweet(str(sweet.id), "3").purchased_quantity == 3


class TestCatalogRules:

    def test_duplicate_name_after_trimming(self, db):
        add(db, name="Peda")

        with pytest.raises(DuplicateNameError):
            add(db, name="  peda ")

    def test_update_to_negative_quantity_leaves_stock_unchanged(self, db):
        sweet = add(db, quantity=7)
        service = SweetService(db)

        with pytest.raises(ValidationError):
            service.update_sweet(sweet.id, {"quantity": -1})

        assert service.sweet_repo.get_current_quantity(sweet.id) == 7

    def test_update_ignores_unknown_and_null_fields(self, db):
        sweet = add(db, name="Peda", price=8)

        updated = SweetService(db).update_sweet(sweet.id, {"price": None, "id": "x", "category": "Milk"})

        assert updated.price == 8
        assert updated.category == "Milk"

    def test_update_refreshes_timestamp(self, db):
        sweet = add(db)
        created = sweet.updated_at

        updated = SweetService(db).update_sweet(sweet.id, {"price": 30})

        assert updated.updated_at >= created

    def test_restock_has_no_upper_bound(self, db):
        sweet = add(db, quantity=0)

        result = SweetService(db).restock_sweet(sweet.id, 1_000_000)

        assert result.sweet.quantity == 1_000_000
        assert result.sweet.in_stock

    def test_delete_then_lookup(self, db):
        sweet = add(db)
        service = SweetService(db)
        service.delete_sweet(sweet.id)

        with pytest.raises(NotFoundError):
            service.restock_sweet(sweet.id, 1)

    def test_duplicate_name_folds_accented_letters(self, db):
        add(db, name="Éclair")

        with pytest.raises(DuplicateNameError):
            add(db, name="éclair")

    def test_unique_index_folds_accented_letters(self, db):
        add(db, name="Ñapa")

        with pytest.raises(IntegrityError):
            SweetRepository(db).create_sweet(
                {"name": "ñAPA", "category": "Barfi", "price": 1.0, "quantity": 1}
            )
        db.rollback()

    def test_search_folds_accented_letters(self, db):
        add(db, name="Éclair", category="Pâtisserie")
        add(db, name="Peda", category="Milk")
        service = SweetService(db)

        assert [s.name for s in service.search_sweets(name="éclair")] == ["Éclair"]
        assert [s.name for s in service.search_sweets(category="PÂTISSERIE")] == ["Éclair"]

    @pytest.mark.parametrize("value", ["abc", "", "123", None])
    def test_parse_invalid_id(self, value):
        with pytest.raises(InvalidIdError):
            parse_sweet_id(value)

    def test_parse_valid_id(self):
        sweet_id = uuid.uuid4()

        assert parse_sweet_id(str(sweet_id)) == sweet_id
        assert parse_sweet_id(sweet_id) is sweet_id


class TestLowStock:

    def test_get_low_stock(self, db):
        add(db, name="Peda", quantity=2)
        add(db, name="Barfi", quantity=5)
        add(db, name="Halwa", quantity=6)

        names = [s.name for s in SweetService(db).get_low_stock(5)]

        assert names == ["Peda", "Barfi"]

    def test_report_job(self, app, db, caplog):
        add(db, name="Peda", quantity=0)
        add(db, name="Halwa", quantity=30)

        with caplog.at_level("WARNING", logger="sweetshop.core.scheduler"):
            names = low_stock_report_job(app.state.session_factory, threshold=5)

        assert names == ["Peda"]
        assert "Stock faible: Peda" in caplog.text

    def test_report_job_swallows_database_errors(self):
        def broken_factory():
            raise RuntimeError("no database")

        assert low_stock_report_job(broken_factory, threshold=5) == []

    def test_scheduler_registers_report(self, app, settings):
        scheduler = init_scheduler(settings, app.state.session_factory)
        try:
            job = scheduler.get_job("low_stock_report")
            assert job is not None
            assert job.args == (app.state.session_factory, settings.low_stock_threshold)
        finally:
            shutdown_scheduler(scheduler)

        assert not scheduler.running


class TestQuantityLimits:

    def test_add_rejects_quantity_beyond_storage(self, db):
        with pytest.raises(ValidationError) as exc_info:
            add(db, quantity=1e19)

        assert exc_info.value.message == "Quantity is too large"

    def test_update_rejects_quantity_beyond_storage(self, db):
        sweet = add(db, quantity=3)
        service = SweetService(db)

        with pytest.raises(ValidationError):
            service.update_sweet(sweet.id, {"quantity": 1e19})

        assert service.sweet_repo.get_current_quantity(sweet.id) == 3

    @pytest.mark.parametrize("quantity", [1e19, 2 ** 63])
    def test_restock_rejects_quantity_beyond_storage(self, db, quantity):
        sweet = add(db, quantity=3)
        service = SweetService(db)

        with pytest.raises(ValidationError):
            service.restock_sweet(sweet.id, quantity)

        assert service.sweet_repo.get_current_quantity(sweet.id) == 3

    def test_restock_cannot_push_total_past_storage(self, db):
        sweet = add(db, quantity=0)
        repo = SweetRepository(db)
        repo.update_sweet(sweet, {"quantity": MAX_QUANTITY - 1})

        with pytest.raises(ValidationError) as exc_info:
            SweetService(db).restock_sweet(sweet.id, 5)

        assert exc_info.value.message == "Quantity is too large"
        assert repo.get_current_quantity(sweet.id) == MAX_QUANTITY - 1

    def test_purchase_rejects_quantity_beyond_storage(self, db):
        sweet = add(db, quantity=3)

        with pytest.raises(ValidationError):
            SweetService(db).purchase_sweet(sweet.id, 1e19)
