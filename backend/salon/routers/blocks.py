# backend/salon/routers/blocks.py
# Manual calendar blocks: breaks, personal time, walk-in holds. DELETE = hard

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import CalendarBlocks as DBCalendarBlocks
from ..schemas.blocks import BlockRead, BlockWrite
from ..services.scheduling import BlockDraft, save_block
from ..services.scheduling.timeutils import parse_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blocks", tags=["blocks"])


def _draft(data: BlockWrite) -> BlockDraft:
    return BlockDraft(
        location_id=data.location_id,
        worker_id=data.worker_id,
        date=data.date,
        start=parse_time(data.start_time),
        duration=data.duration_min,
        note=(data.note or "").strip() or None,
    )


@router.get("/", response_model=list[BlockRead])
def list_blocks(
    worker_id: int,
    target_date: str = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    return (
        db.query(DBCalendarBlocks)
        .filter(
            DBCalendarBlocks.worker_id == worker_id,
            DBCalendarBlocks.date == target_date,
        )
        .order_by(DBCalendarBlocks.start_time)
        .all()
    )


@router.post("/", response_model=BlockRead, status_code=status.HTTP_201_CREATED)
def create_block(data: BlockWrite, db: Session = Depends(get_db)):
    return save_block(db, _draft(data))


@router.put("/{id}", response_model=BlockRead)
def update_block(id: int, data: BlockWrite, db: Session = Depends(get_db)):
    return save_block(db, _draft(data), block_id=id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_block(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBCalendarBlocks, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
    logger.info(f"Block deleted: id={id}")
