from schooldesk.extensions import db


class TimetableDay(db.Model):
    """Parent row grouping the slots of one class on one weekday."""
    __tablename__ = 'class_timetable'
    __table_args__ = (
        db.UniqueConstraint('class_id', 'day_of_week', name='uq_class_timetable_class_day'),
    )

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    day_of_week = db.Column(db.Integer, nullable=False)  # 1=Monday .. 7=Sunday

    slots = db.relationship('TimetableSlot', back_populates='day', lazy=True, cascade="all, delete-orphan")


class TimetableSlot(db.Model):
    __tablename__ = 'timetable_slots'

    id = db.Column(db.Integer, primary_key=True)
    class_timetable_id = db.Column(db.Integer, db.ForeignKey('class_timetable.id'), nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)
    subject_id = db.Column(db.Integer, db.ForeignKey('class_subjects.id'), nullable=True)
    slot_name = db.Column(db.String(80), nullable=True)  # breaks and custom labels

    day = db.relationship('TimetableDay', back_populates='slots')
    subject = db.relationship('Subject')

    def to_dict(self):
        return {
            "id": self.id,
            "class_timetable_id": self.class_timetable_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "subject_id": self.subject_id,
            "slot_name": self.slot_name,
        }
