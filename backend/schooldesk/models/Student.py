from datetime import datetime
from schooldesk.extensions import db

class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=True, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=True)
    full_name = db.Column(db.String(120), nullable=False)
    roll_number = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    admission_date = db.Column(db.Date, nullable=True, default=lambda: datetime.utcnow().date())

    attendance_records = db.relationship('StudentAttendance', back_populates='student', lazy=True,
                                         cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.full_name,
            "roll_number": self.roll_number,
            "class_id": self.class_id,
            "section_id": self.section_id,
            "is_active": self.is_active,
            "admission_date": self.admission_date.isoformat() if self.admission_date else None,
        }
