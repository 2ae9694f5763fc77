from datetime import datetime
from schooldesk.extensions import db


class StudentAttendance(db.Model):
    __tablename__ = 'student_attendance'
    __table_args__ = (
        # Conflict key for the attendance upsert.
        db.UniqueConstraint('student_id', 'date', name='uq_student_attendance_student_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)  # see StudentAttendanceStatus
    remarks = db.Column(db.String(255), nullable=True)
    marked_by_admin_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    last_updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    student = db.relationship('Student', back_populates='attendance_records')
    marked_by = db.relationship('User', foreign_keys=[marked_by_admin_id])


class TeacherAttendance(db.Model):
    __tablename__ = 'teacher_attendance'
    __table_args__ = (
        db.UniqueConstraint('teacher_id', 'date', name='uq_teacher_attendance_teacher_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teachers.id'), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)  # see TeacherAttendanceStatus
    remarks = db.Column(db.String(255), nullable=True)
    marked_by_admin_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    last_updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    teacher = db.relationship('Teacher', back_populates='attendance_records')
    marked_by = db.relationship('User', foreign_keys=[marked_by_admin_id])
