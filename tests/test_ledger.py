import pytest

from backoffice import ledger
from backoffice.exceptions import InsufficientStock, NotFound


def test_apply_delta_increments_and_decrements(db_session, make_product):
    _, inventory = make_product(stock=5)

    assert ledger.apply_delta(db_session, inventory, 3) == 8
    assert ledger.apply_delta(db_session, inventory, -8) == 0
    db_session.commit()

    assert inventory.stock_level == 0


def test_decrement_below_zero_is_refused(db_session, make_product):
    _, inventory = make_product(name="Inverter", stock=2)

    with pytest.raises(InsufficientStock) as excinfo:
        ledger.apply_delta(db_session, inventory, -3, label="Inverter")

    assert str(excinfo.value) == "Insufficient stock for product: Inverter"
    assert excinfo.value.details == {"inventoryId": inventory.id, "available": 2, "requested": 3}
    assert inventory.stock_level == 2


def test_lookup_by_product(db_session, make_product):
    product, inventory = make_product()
    orphan, _ = make_product(with_inventory=False)

    assert ledger.get_by_product(db_session, product.id).id == inventory.id
    assert ledger.find_by_product(db_session, orphan.id) is None
    with pytest.raises(NotFound, match=f"Inventory record not found for product: {orphan.id}"):
        ledger.get_by_product(db_session, orphan.id)
    with pytest.raises(NotFound):
        ledger.get_inventory(db_session, 12345)


def test_serial_set_maintenance(db_session, make_product):
    _, inventory = make_product()

    ledger.add_serials(inventory, ["S1", "S2"])
    ledger.add_serials(inventory, ["S2", "S3"])
    assert inventory.serial_numbers == ["S1", "S2", "S3"]

    ledger.remove_serials(inventory, ["S2", "NOT-HERE"])
    assert inventory.serial_numbers == ["S1", "S3"]
