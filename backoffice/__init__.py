"""
Back-office inventory and sales service.

Tracks products, stock levels, stock movements, sales, job orders and
quotations behind a FastAPI JSON API.
"""
__version__ = "0.1.0"
