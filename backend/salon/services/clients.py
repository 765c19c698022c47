"""Client lookup for staff-entered appointments."""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.tables import Clients

logger = logging.getLogger(__name__)


def normalize_phone(value: str) -> str:
    return re.sub(r"\D+", "", value or "")


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def find_or_create_client(
    db: Session,
    full_name: str,
    phone: str,
    email: str | None = None,
) -> Clients:
    """
    Find a client by phone or e-mail and refresh their details, or create one.

    Only flushes; the caller's commit makes the change durable, so a rejected
    booking leaves no client row behind.
    """
    phone = normalize_phone(phone)
    email = normalize_email(email) or f"{phone or 'client'}@clients.local"

    client = (
        db.query(Clients)
        .filter(or_(Clients.phone == phone, Clients.email == email))
        .first()
    )

    if client:
        client.full_name = full_name
        client.phone = phone
        client.email = email
        client.updated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        db.flush()
        return client

    client = Clients(full_name=full_name, phone=phone, email=email)
    db.add(client)
    db.flush()
    logger.info(f"Created client from staff booking: client_id={client.id}")
    return client
