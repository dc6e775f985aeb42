from sqlalchemy import Column, Index, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class RecurringSessions(Base):
    __tablename__ = 'recurring_sessions'
    __table_args__ = (
        UniqueConstraint('doctor_id', 'dispensary_id', 'weekday'),
    )

    doctor_id = Column(Integer, nullable=False, index=True)
    dispensary_id = Column(Integer, nullable=False, index=True)
    weekday = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)
    max_patients = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)
    minutes_per_patient = Column(Integer)  # NULL = engine default
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class ScheduleOverrides(Base):
    __tablename__ = 'schedule_overrides'
    __table_args__ = (
        UniqueConstraint('doctor_id', 'dispensary_id', 'date'),
    )

    doctor_id = Column(Integer, nullable=False, index=True)
    dispensary_id = Column(Integer, nullable=False, index=True)
    date = Column(Text, nullable=False)  # "YYYY-MM-DD"
    is_modified_session = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    # NULL fields fall back to the recurring session
    start_time = Column(Text)
    end_time = Column(Text)
    max_patients = Column(Integer)
    minutes_per_patient = Column(Integer)
    reason = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


ACTIVE_BOOKING = text("status != 'cancelled'")


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # One live booking per appointment number; cancelled rows keep history
        Index(
            'uq_bookings_active_slot',
            'doctor_id', 'dispensary_id', 'booking_date', 'appointment_number',
            unique=True,
            sqlite_where=ACTIVE_BOOKING,
            postgresql_where=ACTIVE_BOOKING,
        ),
        Index('ix_bookings_day', 'doctor_id', 'dispensary_id', 'booking_date'),
    )

    patient_id = Column(Text, nullable=False, index=True)
    patient_name = Column(Text, nullable=False)
    patient_phone = Column(Text, nullable=False)
    doctor_id = Column(Integer, nullable=False)
    dispensary_id = Column(Integer, nullable=False)
    booking_date = Column(Text, nullable=False)  # "YYYY-MM-DD"
    appointment_number = Column(Integer, nullable=False)
    time_slot = Column(Text, nullable=False)  # "HH:MM-HH:MM"
    estimated_time = Column(Text, nullable=False)  # "HH:MM"
    status = Column(Text, nullable=False, server_default=text("'scheduled'"))
    is_paid = Column(Integer, nullable=False, server_default=text('0'))
    is_patient_visited = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    patient_email = Column(Text)
    symptoms = Column(Text)
    notes = Column(Text)
    checked_in_time = Column(Text)
    completed_time = Column(Text)
