from datetime import datetime
from schooldesk.extensions import db

class Teacher(db.Model):
    __tablename__ = 'teachers'

    id = db.Column(db.Integer, primary_key=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    employee_id = db.Column(db.String(30), nullable=True)
    designation = db.Column(db.String(30), nullable=True)  # full-time, part-time, contract
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    date_of_joining = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('teacher', uselist=False))
    subjects = db.relationship('Subject', backref='teacher', lazy=True)
    attendance_records = db.relationship('TeacherAttendance', back_populates='teacher', lazy=True,
                                         cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.full_name,
            "email": self.email or "",
            "mobile": self.phone or "",
            "employee_id": self.employee_id,
            "employmentType": self.designation or "contract",
            "dateOfJoining": self.date_of_joining.isoformat() if self.date_of_joining else None,
            "status": "active" if self.is_active else "inactive",
            "subjects": [s.name for s in self.subjects],
            "createdAt": self.created_at.isoformat() if self.created_at else "",
        }
