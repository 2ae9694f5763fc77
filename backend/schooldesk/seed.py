import os
from datetime import date, timedelta
from flask import current_app
from schooldesk.extensions import db
from schooldesk.models import (
    School, Role, User, SchoolClass, Section, Student, Teacher, Subject, RoleEnum,
)
from schooldesk.services.attendance import submit_student_attendance
from schooldesk.services.timetable import upsert_slot


def seed_data():
    """Creates roles, two schools with users, classes, students, teachers and a sample week."""
    admin_password = os.getenv("ADMIN_PASSWORD", "your_secure_password")

    for role_name in (r.value for r in RoleEnum):
        if not Role.query.filter_by(name=role_name).first():
            db.session.add(Role(name=role_name))
    db.session.commit()

    def get_role_id(role_name):
        role = Role.query.filter_by(name=role_name).first()
        return role.id if role else None

    school1 = School.query.filter_by(name="Springfield Elementary School").first()
    if not school1:
        school1 = School(name="Springfield Elementary School", address="742 Evergreen Terrace, Springfield",
                         phone="+1-555-0123", email="info@springfield-elementary.edu")
        school2 = School(name="Riverside High School", address="123 River Road, Springfield",
                         phone="+1-555-0456", email="contact@riverside-high.edu")
        db.session.add_all([school1, school2])
        db.session.commit()

    if not User.query.filter_by(username="admin").first():
        superuser = User(username="admin", full_name="Super User", role_id=get_role_id('superuser'))
        superuser.set_password(admin_password)
        db.session.add(superuser)

    school_admin = User.query.filter_by(username="springfield_admin").first()
    if not school_admin:
        school_admin = User(username="springfield_admin", full_name="Seymour Skinner",
                            role_id=get_role_id('admin'), school_id=school1.id)
        school_admin.set_password("adminpass")
        db.session.add(school_admin)
    db.session.commit()

    if SchoolClass.query.filter_by(school_id=school1.id).first():
        current_app.logger.info("Seed data already present, skipping classes and students.")
        return

    grade4 = SchoolClass(school_id=school1.id, name="Grade 4")
    db.session.add(grade4)
    db.session.flush()
    section_a = Section(school_id=school1.id, class_id=grade4.id, name="A")
    db.session.add(section_a)
    db.session.flush()

    students = [
        Student(school_id=school1.id, class_id=grade4.id, section_id=section_a.id,
                full_name=name, roll_number=roll)
        for roll, name in enumerate(["Bart Simpson", "Milhouse Van Houten", "Lisa Simpson"], start=1)
    ]
    teacher = Teacher(school_id=school1.id, full_name="Edna Krabappel", email="edna@springfield-elementary.edu",
                      employee_id="TCH001", designation="full-time", date_of_joining=date(2015, 8, 1))
    db.session.add_all(students + [teacher])
    db.session.flush()

    maths = Subject(school_id=school1.id, class_id=grade4.id, name="Mathematics", teacher_id=teacher.id)
    db.session.add(maths)
    db.session.commit()

    monday = date.today() - timedelta(days=date.today().weekday())
    submit_student_attendance(
        [{"student_id": s.id, "date": monday.isoformat(), "status": "present"} for s in students],
        school1.id,
        school_admin.id,
    )
    upsert_slot(grade4.id, "Monday", "08:00", "08:15", custom_name="Assembly")
    upsert_slot(grade4.id, "Monday", "08:15", "09:00", subject_id=maths.id)

    current_app.logger.info("Seed data inserted for %s.", school1.name)
