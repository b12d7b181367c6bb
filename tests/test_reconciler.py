from decimal import Decimal

import pytest

from backoffice import models, reconciler, schemas
from backoffice.exceptions import InsufficientStock, NotFound, ValidationError
from helpers import movements_of, stock_of


def test_create_sale_deducts_stock_and_logs_movement(db_session, make_product, sale_payload):
    product, inventory = make_product(price="25.50", stock=10)

    sale = reconciler.create_sale(db_session, sale_payload((product.id, 4)))

    assert sale.sale_id == "SALE-0001"
    assert sale.overall_total_amount == Decimal("102.00")
    assert sale.items == [{"product": product.id, "quantity": 4, "totalAmount": "102.00"}]
    assert stock_of(db_session, inventory.id) == 6

    moves = movements_of(db_session, inventory.id)
    assert len(moves) == 1
    assert moves[0].type == models.MovementType.DECREASE
    assert moves[0].quantity == 4
    assert moves[0].reason == "Sale deduction"
    assert moves[0].serial_numbers == []


def test_create_sale_total_is_sum_of_item_totals(db_session, make_product, sale_payload):
    panel, panel_inv = make_product(name="Panel", price="100.00", stock=5)
    inverter, inverter_inv = make_product(name="Inverter", price="349.99", stock=3)

    sale = reconciler.create_sale(db_session, sale_payload((panel.id, 2), (inverter.id, 3)))

    assert sale.overall_total_amount == Decimal("200.00") + Decimal("349.99") * 3
    assert [item["totalAmount"] for item in sale.items] == ["200.00", "1049.97"]
    assert stock_of(db_session, panel_inv.id) == 3
    assert stock_of(db_session, inverter_inv.id) == 0


def test_insufficient_stock_leaves_inventory_untouched(db_session, make_product, sale_payload):
    product, inventory = make_product(stock=10)

    with pytest.raises(InsufficientStock) as excinfo:
        reconciler.create_sale(db_session, sale_payload((product.id, 20)))

    assert "Solar Panel" in str(excinfo.value)
    assert stock_of(db_session, inventory.id) == 10
    assert movements_of(db_session, inventory.id) == []
    assert db_session.query(models.Sale).count() == 0


def test_failure_on_later_item_rolls_back_earlier_items(db_session, make_product, sale_payload):
    first, first_inv = make_product(name="Battery", stock=10)
    second, second_inv = make_product(name="Cable", stock=1)

    with pytest.raises(InsufficientStock):
        reconciler.create_sale(db_session, sale_payload((first.id, 3), (second.id, 5)))

    assert stock_of(db_session, first_inv.id) == 10
    assert stock_of(db_session, second_inv.id) == 1
    assert movements_of(db_session, first_inv.id) == []
    assert db_session.query(models.Sale).count() == 0


def test_unknown_product_is_not_found(db_session, make_product, sale_payload):
    product, inventory = make_product(stock=10)

    with pytest.raises(NotFound, match="Product not found: 999"):
        reconciler.create_sale(db_session, sale_payload((product.id, 1), (999, 1)))

    assert stock_of(db_session, inventory.id) == 10


def test_product_without_inventory_is_not_found(db_session, make_product, sale_payload):
    product, _ = make_product(with_inventory=False)

    with pytest.raises(NotFound, match="Inventory record not found"):
        reconciler.create_sale(db_session, sale_payload((product.id, 1)))


@pytest.mark.parametrize("items", [[], None])
def test_sale_without_items_is_rejected(db_session, sale_payload, items):
    payload = sale_payload()
    payload.sale_items = items

    with pytest.raises(ValidationError, match="at least one item"):
        reconciler.create_sale(db_session, payload)


def test_sale_item_without_quantity_is_rejected(db_session, make_product, sale_payload):
    product, inventory = make_product(stock=10)
    payload = sale_payload()
    payload.sale_items = [schemas.SaleItemIn(product=product.id)]

    with pytest.raises(ValidationError, match="must have a product and quantity"):
        reconciler.create_sale(db_session, payload)
    assert stock_of(db_session, inventory.id) == 10


def test_missing_header_field_is_rejected(db_session, make_product, sale_payload):
    product, _ = make_product(stock=10)
    payload = sale_payload((product.id, 1))
    payload.warranty = "  "

    with pytest.raises(ValidationError, match="All fields are required"):
        reconciler.create_sale(db_session, payload)


def test_sale_numbers_are_sequential(db_session, make_product, sale_payload):
    product, _ = make_product(stock=10)

    first = reconciler.create_sale(db_session, sale_payload((product.id, 1)))
    second = reconciler.create_sale(db_session, sale_payload((product.id, 1)))

    assert (first.sale_id, second.sale_id) == ("SALE-0001", "SALE-0002")


def test_item_totals_are_snapshots(db_session, make_product, sale_payload):
    product, _ = make_product(price="10.00", stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((product.id, 2)))

    product.price = Decimal("99.00")
    db_session.commit()
    db_session.refresh(sale)

    assert sale.overall_total_amount == Decimal("20.00")
    assert sale.items[0]["totalAmount"] == "20.00"


def test_update_sale_reverses_then_deducts(db_session, make_product, sale_payload):
    product, inventory = make_product(price="5.00", stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((product.id, 4)))
    assert stock_of(db_session, inventory.id) == 6

    updated = reconciler.update_sale(db_session, sale.id, schemas.SaleUpdate(
        sale_items=[schemas.SaleItemIn(product=product.id, quantity=2)],
    ))

    assert stock_of(db_session, inventory.id) == 8
    assert updated.overall_total_amount == Decimal("10.00")
    assert updated.client_name == "Acme Corp"

    moves = movements_of(db_session, inventory.id)
    assert [(m.type, m.quantity, m.reason) for m in moves[1:]] == [
        ("INCREASE", 4, "Sale update reversal"),
        ("DECREASE", 2, "Sale update deduction"),
    ]


def test_update_sale_can_reuse_released_stock(db_session, make_product, sale_payload):
    product, inventory = make_product(stock=5)
    sale = reconciler.create_sale(db_session, sale_payload((product.id, 5)))

    reconciler.update_sale(db_session, sale.id, schemas.SaleUpdate(
        sale_items=[schemas.SaleItemIn(product=product.id, quantity=5)],
        status="Partially paid",
    ))

    assert stock_of(db_session, inventory.id) == 0
    assert db_session.get(models.Sale, sale.id).status == "Partially paid"


def test_failed_update_keeps_sale_and_stock(db_session, make_product, sale_payload):
    product, inventory = make_product(price="5.00", stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((product.id, 4)))

    with pytest.raises(InsufficientStock):
        reconciler.update_sale(db_session, sale.id, schemas.SaleUpdate(
            sale_items=[schemas.SaleItemIn(product=product.id, quantity=50)],
        ))

    assert stock_of(db_session, inventory.id) == 6
    assert len(movements_of(db_session, inventory.id)) == 1
    db_session.expire_all()
    assert db_session.get(models.Sale, sale.id).items[0]["quantity"] == 4


def test_update_missing_sale_is_not_found(db_session):
    with pytest.raises(NotFound, match="Sale not found"):
        reconciler.update_sale(db_session, 42, schemas.SaleUpdate(
            sale_items=[schemas.SaleItemIn(product=1, quantity=1)],
        ))


def test_delete_sale_restores_stock(db_session, make_product, sale_payload):
    product, inventory = make_product(stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((product.id, 4)))

    sale_number = reconciler.delete_sale(db_session, sale.id)

    assert sale_number == "SALE-0001"
    assert stock_of(db_session, inventory.id) == 10
    assert db_session.get(models.Sale, sale.id) is None
    moves = movements_of(db_session, inventory.id)
    assert [(m.type, m.quantity, m.reason) for m in moves] == [
        ("DECREASE", 4, "Sale deduction"),
        ("INCREASE", 4, "Sale deletion - stock restored"),
    ]


def test_delete_skips_items_without_inventory(db_session, make_product, sale_payload):
    kept, kept_inv = make_product(name="Kept", stock=10)
    gone, gone_inv = make_product(name="Gone", stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((kept.id, 2), (gone.id, 3)))

    db_session.query(models.StockMovement).filter(models.StockMovement.inventory_id == gone_inv.id).delete()
    db_session.delete(db_session.get(models.InventoryItem, gone_inv.id))
    db_session.commit()

    reconciler.delete_sale(db_session, sale.id)

    assert stock_of(db_session, kept_inv.id) == 10
    assert db_session.get(models.Sale, sale.id) is None


def test_delete_missing_sale_is_not_found(db_session):
    with pytest.raises(NotFound):
        reconciler.delete_sale(db_session, 7)


def test_update_skips_items_without_inventory(db_session, make_product, sale_payload):
    kept, kept_inv = make_product(name="Kept", price="10.00", stock=10)
    gone, gone_inv = make_product(name="Gone", stock=10)
    sale = reconciler.create_sale(db_session, sale_payload((kept.id, 2), (gone.id, 3)))

    db_session.query(models.StockMovement).filter(models.StockMovement.inventory_id == gone_inv.id).delete()
    db_session.delete(db_session.get(models.InventoryItem, gone_inv.id))
    db_session.commit()

    updated = reconciler.update_sale(db_session, sale.id, schemas.SaleUpdate(
        sale_items=[schemas.SaleItemIn(product=kept.id, quantity=1)],
    ))

    assert stock_of(db_session, kept_inv.id) == 9
    assert updated.items == [{"product": kept.id, "quantity": 1, "totalAmount": "10.00"}]
    assert updated.overall_total_amount == Decimal("10.00")
