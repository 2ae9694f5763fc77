"""
Attendance reconciliation for students and teachers.

Student marks are written with one bulk upsert keyed on (student_id, date), so
resubmitting a day overwrites the stored rows instead of duplicating them.

Teacher marks replace whole days: every row of the school for a target date is
deleted and the new set inserted. Both steps share one session transaction and
are rolled back together on failure. Nothing serializes two submissions for the
same date, so concurrent teacher submissions still race.
"""

from datetime import date, datetime

import pandas as pd
from flask import current_app
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import contains_eager

from schooldesk.errors import PersistenceError, ValidationError
from schooldesk.extensions import db
from schooldesk.models import (
    Student,
    StudentAttendance,
    StudentAttendanceStatus,
    Teacher,
    TeacherAttendance,
    TeacherAttendanceStatus,
    User,
)
from schooldesk_utils.serialization import to_dict

DATE_FORMAT = "%Y-%m-%d"

STUDENT_STATUSES = frozenset(s.value for s in StudentAttendanceStatus)
TEACHER_STATUSES = frozenset(s.value for s in TeacherAttendanceStatus)

# Caller vocabulary the teacher screens use that has no stored counterpart.
# The mapping is lossy: a stored "leave" no longer says which kind it was.
TEACHER_STATUS_ALIASES = {
    "sick": TeacherAttendanceStatus.leave.value,
    "personal": TeacherAttendanceStatus.leave.value,
}

# Columns overwritten when a (student_id, date) mark already exists.
STUDENT_UPSERT_COLUMNS = ("status", "remarks", "marked_by_admin_id", "last_updated_at")

UPLOAD_COLUMNS = ("student_id", "date", "status", "remarks")


def parse_date(value, field="date"):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise ValidationError(f"Missing {field}")
    try:
        return datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {field} '{value}', expected YYYY-MM-DD")


def _parse_id(value, field):
    if value is None or str(value).strip() == "":
        raise ValidationError(f"Missing {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field} '{value}'")


def normalize_student_status(value):
    status = str(value or "").strip().lower()
    if status not in STUDENT_STATUSES:
        raise ValidationError(
            f"Invalid status '{value}'. Allowed: {', '.join(sorted(STUDENT_STATUSES))}"
        )
    return status


def normalize_teacher_status(value):
    status = str(value or "").strip().lower()
    status = TEACHER_STATUS_ALIASES.get(status, status)
    if status not in TEACHER_STATUSES:
        allowed = sorted(TEACHER_STATUSES | set(TEACHER_STATUS_ALIASES))
        raise ValidationError(f"Invalid status '{value}'. Allowed: {', '.join(allowed)}")
    return status


def _upsert_insert(table):
    dialect = db.session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise PersistenceError(f"Upsert is not supported on the '{dialect}' database", step="upsert")


def _require_members(model, ids, school_id, label):
    known = {
        row_id for (row_id,) in db.session.query(model.id)
        .filter(model.school_id == school_id, model.id.in_(sorted(ids)))
    }
    unknown = sorted(set(ids) - known)
    if unknown:
        raise ValidationError(
            f"Unknown {label} for this school: {', '.join(str(i) for i in unknown)}"
        )


def _require_marker(user_id, school_id):
    """The marking user must belong to the school, or be a superuser."""
    user = db.session.get(User, user_id)
    role_name = user.role.name if user and user.role else ""
    if not user or (user.school_id != school_id and role_name != "superuser"):
        raise ValidationError(f"Unknown marked_by_admin_id for this school: {user_id}")


def submit_student_attendance(records, school_id, marked_by):
    """
    Upsert a batch of student marks.

    Every record needs ``student_id``, ``date`` and ``status``; ``remarks`` is
    optional. The whole batch is validated before anything is written. Later
    records win when the batch repeats a (student_id, date) pair.

    Returns the persisted rows ordered by date, then student.
    """
    if not isinstance(records, (list, tuple)) or not records:
        raise ValidationError("attendance must be a non-empty list")
    if not school_id:
        raise ValidationError("School ID not found")

    now = datetime.utcnow()
    rows = {}
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"Attendance record {index} must be an object")
        student_id = _parse_id(record.get("student_id"), "student_id")
        mark_date = parse_date(record.get("date"))
        rows[(student_id, mark_date)] = {
            "student_id": student_id,
            "school_id": school_id,
            "date": mark_date,
            "status": normalize_student_status(record.get("status")),
            "remarks": record.get("remarks") or None,
            "marked_by_admin_id": marked_by,
            "last_updated_at": now,
        }

    student_ids = {student_id for student_id, _ in rows}
    _require_members(Student, student_ids, school_id, "student(s)")

    table = StudentAttendance.__table__
    stmt = _upsert_insert(table).values(list(rows.values()))
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.student_id, table.c.date],
        set_={name: getattr(stmt.excluded, name) for name in STUDENT_UPSERT_COLUMNS},
    )
    try:
        db.session.execute(stmt)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Student attendance upsert failed for school %s: %s", school_id, e)
        raise PersistenceError("Failed to save attendance", step="upsert") from e

    dates = {mark_date for _, mark_date in rows}
    persisted = (
        StudentAttendance.query
        .filter(
            StudentAttendance.student_id.in_(sorted(student_ids)),
            StudentAttendance.date.in_(sorted(dates)),
        )
        .order_by(StudentAttendance.date.asc(), StudentAttendance.student_id.asc())
        .all()
    )
    return [mark for mark in persisted if (mark.student_id, mark.date) in rows]


def submit_teacher_attendance(records, batch_date, school_id, marked_by):
    """
    Replace the teacher marks of every date the batch touches.

    Records look like ``{"teacherId", "status", "notes"?, "date"?}``. A record
    ``date`` overrides ``batch_date`` (weekly screens send one per record).
    Statuses go through TEACHER_STATUS_ALIASES before validation.
    """
    if not isinstance(records, (list, tuple)) or not records or not marked_by:
        raise ValidationError("Missing required fields")
    if not school_id:
        raise ValidationError("School ID not found")

    marked_by = _parse_id(marked_by, "marked_by_admin_id")
    default_date = parse_date(batch_date) if batch_date else None
    now = datetime.utcnow()
    rows = {}
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"Attendance record {index} must be an object")
        teacher_id = _parse_id(record.get("teacherId", record.get("teacher_id")), "teacherId")
        mark_date = parse_date(record["date"]) if record.get("date") else default_date
        if mark_date is None:
            raise ValidationError("Missing date for some attendance records")
        rows[(teacher_id, mark_date)] = {
            "teacher_id": teacher_id,
            "school_id": school_id,
            "date": mark_date,
            "status": normalize_teacher_status(record.get("status")),
            "remarks": record.get("notes", record.get("remarks")) or None,
            "marked_by_admin_id": marked_by,
            "last_updated_at": now,
        }

    _require_members(Teacher, {teacher_id for teacher_id, _ in rows}, school_id, "teacher(s)")
    _require_marker(marked_by, school_id)

    target_dates = sorted({mark_date for _, mark_date in rows})
    step = "delete"
    try:
        (
            TeacherAttendance.query
            .filter(
                TeacherAttendance.school_id == school_id,
                TeacherAttendance.date.in_(target_dates),
            )
            .delete(synchronize_session=False)
        )
        step = "insert"
        db.session.execute(TeacherAttendance.__table__.insert(), list(rows.values()))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(
            "Teacher attendance %s step failed for school %s on %s; rolled back: %s",
            step, school_id, ", ".join(d.isoformat() for d in target_dates), e,
        )
        raise PersistenceError("Failed to save attendance records", step=step) from e

    return {
        "date": default_date.isoformat() if default_date else None,
        "count": len(rows),
    }


def _apply_date_filters(query, column, mark_date=None, start_date=None, end_date=None):
    if start_date and end_date:
        return query.filter(
            column >= parse_date(start_date, "start_date"),
            column <= parse_date(end_date, "end_date"),
        )
    if mark_date:
        return query.filter(column == parse_date(mark_date))
    return query


def query_student_attendance(school_id, class_id=None, section_id=None, mark_date=None,
                             start_date=None, end_date=None):
    """Lazy query of a school's student marks, ascending by date."""
    query = (
        StudentAttendance.query
        .join(Student, StudentAttendance.student_id == Student.id)
        .options(contains_eager(StudentAttendance.student))
        .filter(StudentAttendance.school_id == school_id)
    )
    if class_id:
        query = query.filter(Student.class_id == class_id)
    if section_id:
        query = query.filter(Student.section_id == section_id)
    query = _apply_date_filters(query, StudentAttendance.date, mark_date, start_date, end_date)
    return query.order_by(StudentAttendance.date.asc(), StudentAttendance.id.asc())


def query_teacher_attendance(school_id, mark_date=None, start_date=None, end_date=None):
    if not mark_date and not (start_date and end_date):
        raise ValidationError("Please provide either a date or a date range")
    query = (
        TeacherAttendance.query
        .join(Teacher, TeacherAttendance.teacher_id == Teacher.id)
        .options(contains_eager(TeacherAttendance.teacher))
        .filter(TeacherAttendance.school_id == school_id)
    )
    query = _apply_date_filters(query, TeacherAttendance.date, mark_date, start_date, end_date)
    return query.order_by(TeacherAttendance.date.asc(), TeacherAttendance.id.asc())


def delete_student_attendance(school_id, student_id, mark_date):
    if not student_id or not mark_date:
        raise ValidationError("Student ID and date are required")
    try:
        deleted = (
            StudentAttendance.query
            .filter_by(
                school_id=school_id,
                student_id=_parse_id(student_id, "student_id"),
                date=parse_date(mark_date),
            )
            .delete(synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Deleting attendance of student %s failed: %s", student_id, e)
        raise PersistenceError("Failed to delete attendance", step="delete") from e
    return deleted


def _marker_name(mark):
    if not mark.marked_by:
        return None
    return mark.marked_by.full_name or mark.marked_by.username


def serialize_student_mark(mark):
    data = to_dict(mark)
    student = mark.student
    data["student"] = {
        "id": student.id,
        "full_name": student.full_name,
        "roll_number": student.roll_number,
        "class_id": student.class_id,
    } if student else None
    data["marked_by_name"] = _marker_name(mark)
    return data


def serialize_teacher_mark(mark):
    data = to_dict(mark)
    teacher = mark.teacher
    data["teacher"] = {
        "id": teacher.id,
        "full_name": teacher.full_name,
        "email": teacher.email,
    } if teacher else None
    data["marked_by_name"] = _marker_name(mark)
    return data


def read_attendance_upload(file):
    """Read a CSV/Excel upload into student attendance records."""
    filename = file.filename or ""
    ext = filename.rsplit('.', 1)[1].lower() if '.' in filename else ""
    if ext not in ("csv", "xls", "xlsx"):
        raise ValidationError("Unsupported file format. Use CSV or Excel.")

    try:
        if ext == "csv":
            df = pd.read_csv(file.stream, dtype=str)
        else:
            df = pd.read_excel(file.stream, dtype=str)
    except Exception as e:
        raise ValidationError(f"Failed to read file: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in UPLOAD_COLUMNS[:3] if c not in df.columns]
    if missing:
        raise ValidationError(f"Missing column(s): {', '.join(missing)}")

    # Non-ISO values are kept as typed so parse_date rejects them by name.
    parsed = pd.to_datetime(df["date"], errors="coerce", format="ISO8601")
    df["date"] = parsed.dt.strftime(DATE_FORMAT).where(parsed.notna(), df["date"])
    columns = [c for c in UPLOAD_COLUMNS if c in df.columns]
    df = df[columns].astype(object)
    df = df.where(df.notna(), None)
    return df.to_dict(orient="records")
