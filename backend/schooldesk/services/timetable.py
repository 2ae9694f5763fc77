"""
Timetable slots: one parent day row per (class, weekday), many slots per day.

Day names map to fixed ordinals, Monday=1 .. Sunday=7, by exact match only.
"""

from datetime import datetime, time

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from schooldesk.errors import PersistenceError, ValidationError
from schooldesk.extensions import db
from schooldesk.models import Subject, TimetableDay, TimetableSlot

DAY_ORDINALS = {
    "Monday": 1,
    "Tuesday": 2,
    "Wednesday": 3,
    "Thursday": 4,
    "Friday": 5,
    "Saturday": 6,
    "Sunday": 7,
}
ORDINAL_DAYS = {ordinal: name for name, ordinal in DAY_ORDINALS.items()}

UNKNOWN_DAY = "Unknown"
BREAK_LABEL = "Break"
EMPTY_TIME = "00:00"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


def day_ordinal(day_name):
    ordinal = DAY_ORDINALS.get(day_name) if isinstance(day_name, str) else None
    if ordinal is None:
        raise ValidationError("Invalid day provided")
    return ordinal


def day_name(ordinal):
    return ORDINAL_DAYS.get(ordinal, UNKNOWN_DAY)


def parse_slot_time(value, field):
    if isinstance(value, time):
        return value
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(str(value).strip(), fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid {field} '{value}', expected HH:MM")


def format_slot_time(value):
    """HH:MM for display; seconds are dropped and a missing time reads 00:00."""
    if value is None or value == "":
        return EMPTY_TIME
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value)[:5]


def slot_label(slot_name, subject_name):
    if slot_name:
        return slot_name
    if subject_name:
        return subject_name
    return BREAK_LABEL


def find_day(class_id, ordinal):
    return TimetableDay.query.filter_by(class_id=class_id, day_of_week=ordinal).first()


def _resolve_day(class_id, ordinal):
    """Find or create the day row. The new row is flushed, not committed."""
    try:
        timetable_day = find_day(class_id, ordinal)
        if timetable_day is None:
            timetable_day = TimetableDay(class_id=class_id, day_of_week=ordinal)
            db.session.add(timetable_day)
            db.session.flush()
        return timetable_day
    except IntegrityError:
        # A concurrent request created the same (class, day) first.
        db.session.rollback()
        timetable_day = find_day(class_id, ordinal)
        if timetable_day is not None:
            return timetable_day
        current_app.logger.error("Timetable day for class %s/%s vanished after conflict", class_id, ordinal)
        raise PersistenceError("Failed to create timetable day", step="day")
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Resolving timetable day for class %s/%s failed: %s", class_id, ordinal, e)
        raise PersistenceError("Failed to create timetable day", step="day") from e


def upsert_slot(class_id, day, start_time, end_time, subject_id=None, custom_name=None):
    """
    Attach a slot to the class's day record, creating the day on first use.

    Either ``subject_id`` or ``custom_name`` labels the slot; with neither the
    slot reads as a break. Slots are not deduplicated: posting the same slot
    twice stores two rows under the same day.
    """
    if not class_id or not day or not start_time or not end_time:
        raise ValidationError("Missing required fields")

    ordinal = day_ordinal(day)
    start = parse_slot_time(start_time, "startTime")
    end = parse_slot_time(end_time, "endTime")
    custom_name = (custom_name or "").strip() or None

    if subject_id:
        try:
            subject_id = int(subject_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid subjectId '{subject_id}'")
        if Subject.query.filter_by(id=subject_id, class_id=class_id).first() is None:
            raise ValidationError("Unknown subject for this class")
    else:
        subject_id = None

    timetable_day = _resolve_day(class_id, ordinal)

    slot = TimetableSlot(
        class_timetable_id=timetable_day.id,
        start_time=start,
        end_time=end,
        subject_id=subject_id,
        slot_name=custom_name,
    )
    try:
        db.session.add(slot)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Creating timetable slot for class %s on %s failed: %s", class_id, day, e)
        raise PersistenceError("Failed to create timetable slot", step="slot") from e
    return slot


def list_slots(class_id):
    """Flattened slots of a class in storage order; callers sort if they need to."""
    if not class_id:
        raise ValidationError("classId is required")

    rows = (
        db.session.query(
            TimetableSlot.start_time,
            TimetableSlot.end_time,
            TimetableSlot.slot_name,
            Subject.name,
            TimetableDay.day_of_week,
        )
        .join(TimetableDay, TimetableSlot.class_timetable_id == TimetableDay.id)
        .outerjoin(Subject, TimetableSlot.subject_id == Subject.id)
        .filter(TimetableDay.class_id == class_id)
        .order_by(TimetableSlot.id)
        .all()
    )
    return [
        {
            "day": day_name(day_of_week),
            "startTime": format_slot_time(start_time),
            "endTime": format_slot_time(end_time),
            "subject": slot_label(slot_name, subject_name),
        }
        for start_time, end_time, slot_name, subject_name, day_of_week in rows
    ]
