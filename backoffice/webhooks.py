"""
Webhook notifications for back-office events.

External systems subscribe by listing their URLs in WEBHOOK_URLS. Events:
sale.created, sale.updated, sale.deleted and stock.movement_recorded.
Delivery is best effort: failures are logged and never reach the client.
"""
import asyncio
import logging
import os
from datetime import datetime
from typing import Any, Dict
import httpx

logger = logging.getLogger(__name__)

WEBHOOK_URLS = [url.strip() for url in os.getenv("WEBHOOK_URLS", "").split(",") if url.strip()]
WEBHOOK_TIMEOUT = 5.0  # seconds

# strong references to in-flight deliveries until they finish
_pending_tasks = set()


async def send_webhook(event_type: str, data: Dict[str, Any]) -> None:
    """
    Post an event to every subscribed URL concurrently.

    Args:
        event_type: Event name, e.g. "sale.created"
        data: JSON-serialisable event body
    """
    if not WEBHOOK_URLS:
        return

    payload = {
        "event": event_type,
        "data": data,
        "timestamp": datetime.utcnow().isoformat(),
    }

    async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT) as client:
        await asyncio.gather(
            *(send_single_webhook(client, url, payload) for url in WEBHOOK_URLS),
            return_exceptions=True,
        )


async def send_single_webhook(client: httpx.AsyncClient, url: str, payload: Dict[str, Any]) -> None:
    """Deliver one payload; HTTP errors and non-2xx answers are logged."""
    try:
        response = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        logger.warning(f"Webhook error for {url}: {str(e)}")
        return

    if response.status_code >= 400:
        logger.warning(f"Webhook failed for {url}: HTTP {response.status_code}")


def _dispatch(event_type: str, data: Dict[str, Any]) -> None:
    # fire and forget on the running loop
    if not WEBHOOK_URLS:
        return
    task = asyncio.create_task(send_webhook(event_type, data))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)


def notify_sale_created(sale_data: Dict[str, Any]) -> None:
    _dispatch("sale.created", sale_data)


def notify_sale_updated(sale_data: Dict[str, Any]) -> None:
    _dispatch("sale.updated", sale_data)


def notify_sale_deleted(sale_pk: int, sale_number: str) -> None:
    """
    Notify that a sale was deleted and its stock restored.

    Args:
        sale_pk: Sale primary key
        sale_number: Sale number, e.g. "SALE-0001"
    """
    _dispatch("sale.deleted", {"id": sale_pk, "saleID": sale_number})


def notify_stock_movement(movement_data: Dict[str, Any], new_stock_level: int) -> None:
    """Notify that a manual stock movement was recorded, with the resulting level."""
    _dispatch("stock.movement_recorded", {**movement_data, "newStockLevel": new_stock_level})
