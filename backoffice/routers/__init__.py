"""API routers, one per resource."""
from . import inventory, job_orders, products, quotations, sales, stock_movements

all_routers = [
    products.router,
    inventory.router,
    stock_movements.router,
    sales.router,
    job_orders.router,
    quotations.router,
]
