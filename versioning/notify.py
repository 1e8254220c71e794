"""Delivery of committed audit entries to an external audit sink."""

from __future__ import annotations

import logging

import httpx

from src.config import settings

logger = logging.getLogger(__name__)

_TIMEOUT = 5.0


async def emit_audit_event(payload: dict) -> None:
    """POST one audit entry to ``settings.audit_webhook_url``.

    The entry is already committed when this runs, so delivery problems are
    logged and dropped.
    """
    url = settings.audit_webhook_url
    if not url:
        return

    headers = {"X-Audit-Action": payload.get("action") or "unknown"}
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Audit entry %s not delivered to %s: %s", payload.get("id"), url, exc)
        return
    logger.info("Audit entry %s delivered to %s", payload.get("id"), url)
