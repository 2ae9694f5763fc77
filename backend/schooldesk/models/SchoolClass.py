from datetime import datetime
from schooldesk.extensions import db

class SchoolClass(db.Model):
    __tablename__ = 'classes'
    __table_args__ = (
        db.UniqueConstraint('school_id', 'name', name='uq_classes_school_name'),
    )

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    sections = db.relationship('Section', backref='school_class', lazy=True, cascade="all, delete-orphan")
    students = db.relationship('Student', backref='school_class', lazy=True)
    subjects = db.relationship('Subject', backref='school_class', lazy=True, cascade="all, delete-orphan")
    timetable_days = db.relationship('TimetableDay', backref='school_class', lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "school_id": self.school_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Section(db.Model):
    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "class_id": self.class_id,
        }
