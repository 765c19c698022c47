from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

# Dates are stored as 'YYYY-MM-DD' and times as 'HH:MM' so that
# lexicographic comparison matches chronological order.

SHIFT_TYPES = ("morning", "afternoon", "off")
APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")
APPOINTMENT_SOURCES = ("web", "admin")


class Locations(Base):
    __tablename__ = 'locations'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    max_active_workers = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    shift_settings = relationship('ShiftSettings', back_populates='location', uselist=False)
    workers = relationship('Workers', back_populates='location')


class ShiftSettings(Base):
    __tablename__ = 'shift_settings'

    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), primary_key=True)
    work_start = Column(Text, nullable=False)
    work_end = Column(Text, nullable=False)
    morning_start = Column(Text, nullable=False)
    morning_end = Column(Text, nullable=False)
    afternoon_start = Column(Text, nullable=False)
    afternoon_end = Column(Text, nullable=False)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    location = relationship('Locations', back_populates='shift_settings')


class Workers(Base):
    __tablename__ = 'workers'

    id = Column(Integer, primary_key=True)
    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    notification_email = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    location = relationship('Locations', back_populates='workers')
    shifts = relationship('WorkerShifts', back_populates='worker')
    worker_services = relationship('WorkerServices', back_populates='worker')
    appointments = relationship('Appointments', back_populates='worker')
    blocks = relationship('CalendarBlocks', back_populates='worker')


class WorkerShifts(Base):
    __tablename__ = 'worker_shifts'
    __table_args__ = (
        UniqueConstraint('worker_id', 'date'),
        CheckConstraint("shift_type IN ('morning', 'afternoon', 'off')"),
    )

    id = Column(Integer, primary_key=True)
    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    worker_id = Column(ForeignKey('workers.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    shift_type = Column(Text, nullable=False)

    worker = relationship('Workers', back_populates='shifts')


class Services(Base):
    __tablename__ = 'services'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    worker_services = relationship('WorkerServices', back_populates='service')


class WorkerServices(Base):
    __tablename__ = 'worker_services'
    __table_args__ = (
        UniqueConstraint('worker_id', 'service_id'),
    )

    id = Column(Integer, primary_key=True)
    worker_id = Column(ForeignKey('workers.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    duration_min = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    worker = relationship('Workers', back_populates='worker_services')
    service = relationship('Services', back_populates='worker_services')


class Clients(Base):
    __tablename__ = 'clients'

    id = Column(Integer, primary_key=True)
    full_name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    email = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    appointments = relationship('Appointments', back_populates='client')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        Index('ix_appointments_worker_date', 'worker_id', 'date'),
        CheckConstraint('start_time < end_time'),
    )

    id = Column(Integer, primary_key=True)
    location_id = Column(ForeignKey('locations.id'), nullable=False)
    worker_id = Column(ForeignKey('workers.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(ForeignKey('clients.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'))

    # snapshot of the worker-service at booking time
    service_name_snapshot = Column(Text, nullable=False)
    duration_min_snapshot = Column(Integer, nullable=False)
    price_snapshot = Column(Float, nullable=False, server_default=text('0'))

    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    note = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    source = Column(Text, nullable=False, server_default=text("'web'"))

    cancelled_by = Column(Text)
    cancellation_reason = Column(Text)
    cancelled_at = Column(Text)

    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    worker = relationship('Workers', back_populates='appointments')
    client = relationship('Clients', back_populates='appointments')


class CalendarBlocks(Base):
    __tablename__ = 'calendar_blocks'
    __table_args__ = (
        Index('ix_calendar_blocks_worker_date', 'worker_id', 'date'),
        CheckConstraint('start_time < end_time'),
    )

    id = Column(Integer, primary_key=True)
    location_id = Column(ForeignKey('locations.id'), nullable=False)
    worker_id = Column(ForeignKey('workers.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    duration_min = Column(Integer, nullable=False)
    note = Column(Text)
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    worker = relationship('Workers', back_populates='blocks')
