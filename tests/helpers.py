"""Shared helpers for the test modules."""
from backoffice import models


def sale_body(*lines, client_name="Acme Corp", **overrides):
    """JSON body for POST/PUT /api/sales from (product_id, quantity) pairs."""
    body = {
        "clientName": client_name,
        "saleItems": [{"product": product_id, "quantity": qty} for product_id, qty in lines],
        "dateOfPurchase": "2024-05-01T10:00:00",
        "warranty": "1 year",
        "termPayable": "30 days",
        "modeOfPayment": "Cash",
        "status": "Paid",
    }
    body.update(overrides)
    return body


def stock_of(db_session, inventory_id):
    db_session.expire_all()
    return db_session.get(models.InventoryItem, inventory_id).stock_level


def movements_of(db_session, inventory_id):
    db_session.expire_all()
    return (
        db_session.query(models.StockMovement)
        .filter(models.StockMovement.inventory_id == inventory_id)
        .order_by(models.StockMovement.id.asc())
        .all()
    )
