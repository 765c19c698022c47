# backend/salon/models/overlap_guard.py
"""
Storage-level calendar overlap guard.

Appointments (except cancelled ones) and calendar blocks of the same worker on
the same date must never overlap. The booking flow checks this in Python first
(advisory), but only the guard installed here is authoritative: it runs inside
the writing statement, so two requests that both passed the advisory check
cannot both commit.

SQLite:     BEFORE INSERT/UPDATE triggers, atomic under the single-writer lock.
PostgreSQL: one trigger function serialised per (worker, date) with a
            transaction-scoped advisory lock; raises SQLSTATE 23P01.

The DDL is attached to ``metadata`` so it runs after every table exists.
"""

from sqlalchemy import DDL, event

from .tables import metadata

OVERLAP_MESSAGE = "calendar slot overlaps an existing appointment or block"


def _sqlite_overlap_exists(exclude_table: str | None) -> str:
    appointment_self = " AND a.id != NEW.id" if exclude_table == "appointments" else ""
    block_self = " AND b.id != NEW.id" if exclude_table == "calendar_blocks" else ""
    return f"""
        EXISTS (
            SELECT 1 FROM appointments a
            WHERE a.worker_id = NEW.worker_id
              AND a.date = NEW.date
              AND a.status != 'cancelled'
              AND a.start_time < NEW.end_time
              AND a.end_time > NEW.start_time{appointment_self}
        )
        OR EXISTS (
            SELECT 1 FROM calendar_blocks b
            WHERE b.worker_id = NEW.worker_id
              AND b.date = NEW.date
              AND b.start_time < NEW.end_time
              AND b.end_time > NEW.start_time{block_self}
        )
    """


def _sqlite_trigger(name: str, timing: str, table: str, when: str | None, exclude_self: bool) -> DDL:
    condition = f"\nWHEN {when}" if when else ""
    exists = _sqlite_overlap_exists(table if exclude_self else None)
    return DDL(
        f"""
        CREATE TRIGGER IF NOT EXISTS {name}
        {timing} ON {table}{condition}
        BEGIN
            SELECT RAISE(ABORT, '{OVERLAP_MESSAGE}')
            WHERE {exists};
        END
        """
    ).execute_if(dialect="sqlite")


SQLITE_TRIGGERS = [
    _sqlite_trigger(
        "appointments_no_overlap_insert",
        "BEFORE INSERT",
        "appointments",
        "NEW.status != 'cancelled'",
        exclude_self=False,
    ),
    _sqlite_trigger(
        "appointments_no_overlap_update",
        "BEFORE UPDATE OF worker_id, date, start_time, end_time, status",
        "appointments",
        "NEW.status != 'cancelled'",
        exclude_self=True,
    ),
    _sqlite_trigger(
        "calendar_blocks_no_overlap_insert",
        "BEFORE INSERT",
        "calendar_blocks",
        None,
        exclude_self=False,
    ),
    _sqlite_trigger(
        "calendar_blocks_no_overlap_update",
        "BEFORE UPDATE OF worker_id, date, start_time, end_time",
        "calendar_blocks",
        None,
        exclude_self=True,
    ),
]


PG_FUNCTION = DDL(
    f"""
    CREATE OR REPLACE FUNCTION calendar_guard_overlap() RETURNS trigger AS $$
    BEGIN
        -- calendar_blocks has no status column: read NEW.status only for appointments
        IF TG_TABLE_NAME = 'appointments' THEN
            IF NEW.status = 'cancelled' THEN
                RETURN NEW;
            END IF;
        END IF;

        PERFORM pg_advisory_xact_lock(hashtext(NEW.worker_id::text || ':' || NEW.date));

        IF EXISTS (
            SELECT 1 FROM appointments a
            WHERE a.worker_id = NEW.worker_id
              AND a.date = NEW.date
              AND a.status <> 'cancelled'
              AND a.start_time < NEW.end_time
              AND a.end_time > NEW.start_time
              AND NOT (TG_TABLE_NAME = 'appointments' AND a.id = NEW.id)
        ) OR EXISTS (
            SELECT 1 FROM calendar_blocks b
            WHERE b.worker_id = NEW.worker_id
              AND b.date = NEW.date
              AND b.start_time < NEW.end_time
              AND b.end_time > NEW.start_time
              AND NOT (TG_TABLE_NAME = 'calendar_blocks' AND b.id = NEW.id)
        ) THEN
            RAISE EXCEPTION '{OVERLAP_MESSAGE}' USING ERRCODE = '23P01';
        END IF;

        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
    """
).execute_if(dialect="postgresql")


PG_GUARDED_TABLES = ("appointments", "calendar_blocks")

# after_create fires on every create_all, also when every table already
# exists, so the triggers are dropped and recreated each time
PG_TRIGGERS = [
    ddl
    for table in PG_GUARDED_TABLES
    for ddl in (
        DDL(f"DROP TRIGGER IF EXISTS {table}_no_overlap ON {table}").execute_if(dialect="postgresql"),
        DDL(
            f"""
            CREATE TRIGGER {table}_no_overlap
            BEFORE INSERT OR UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION calendar_guard_overlap()
            """
        ).execute_if(dialect="postgresql"),
    )
]


for ddl in [*SQLITE_TRIGGERS, PG_FUNCTION, *PG_TRIGGERS]:
    event.listen(metadata, "after_create", ddl)
