# backend/salon/routers/deps.py
# Identity is resolved upstream; the gateway forwards the client as X-Client-Id.

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Clients as DBClients


def get_current_client(
    x_client_id: int | None = Header(default=None),
    db: Session = Depends(get_db),
) -> DBClients:
    if x_client_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    client = db.get(DBClients, x_client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return client
