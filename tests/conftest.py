from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from schooldesk import create_app
from schooldesk.config import TestingConfig
from schooldesk.extensions import db
from schooldesk.models import (
    Role, School, User, SchoolClass, Section, Student, Teacher, Subject, RoleEnum,
)


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        AUDIT_LOG_FILE = str(tmp_path / "logs" / "audit.log")

    app = create_app(Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


def _user(username, role, school_id=None, password="secret-pass"):
    user = User(username=username, full_name=username.replace("_", " ").title(),
                role_id=role.id, school_id=school_id)
    user.set_password(password)
    db.session.add(user)
    return user


@pytest.fixture
def school_data(app):
    with app.app_context():
        roles = {r.value: Role(name=r.value) for r in RoleEnum}
        db.session.add_all(roles.values())

        school = School(name="Springfield Elementary School", address="742 Evergreen Terrace")
        other_school = School(name="Shelbyville Elementary", address="1 Main St")
        db.session.add_all([school, other_school])
        db.session.flush()

        admin = _user("springfield_admin", roles["admin"], school.id)
        teacher_user = _user("edna_k", roles["teacher"], school.id)
        superuser = _user("root_admin", roles["superuser"])
        other_admin = _user("shelbyville_admin", roles["admin"], other_school.id)

        grade4 = SchoolClass(school_id=school.id, name="Grade 4")
        other_class = SchoolClass(school_id=other_school.id, name="Grade 4")
        db.session.add_all([grade4, other_class])
        db.session.flush()

        section_a = Section(school_id=school.id, class_id=grade4.id, name="A")
        db.session.add(section_a)
        db.session.flush()

        students = [
            Student(school_id=school.id, class_id=grade4.id, section_id=section_a.id,
                    full_name=name, roll_number=roll)
            for roll, name in enumerate(["Bart Simpson", "Lisa Simpson", "Milhouse Van Houten"], start=1)
        ]
        other_student = Student(school_id=other_school.id, class_id=other_class.id,
                                full_name="Nelson Muntz", roll_number=1)
        teachers = [
            Teacher(school_id=school.id, full_name="Edna Krabappel", email="edna@example.com"),
            Teacher(school_id=school.id, full_name="Elizabeth Hoover", email="hoover@example.com"),
        ]
        other_teacher = Teacher(school_id=other_school.id, full_name="Dewey Largo")
        db.session.add_all(students + teachers + [other_student, other_teacher])
        db.session.flush()

        maths = Subject(school_id=school.id, class_id=grade4.id, name="Mathematics", teacher_id=teachers[0].id)
        db.session.add(maths)
        db.session.commit()

        return SimpleNamespace(
            school_id=school.id,
            other_school_id=other_school.id,
            class_id=grade4.id,
            other_class_id=other_class.id,
            section_id=section_a.id,
            student_ids=[s.id for s in students],
            other_student_id=other_student.id,
            teacher_ids=[t.id for t in teachers],
            other_teacher_id=other_teacher.id,
            subject_id=maths.id,
            admin_id=admin.id,
            teacher_user_id=teacher_user.id,
            superuser_id=superuser.id,
            other_admin_id=other_admin.id,
        )


@pytest.fixture
def auth_headers(app):
    def make(user_id):
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}
    return make


@pytest.fixture
def admin_headers(auth_headers, school_data):
    return auth_headers(school_data.admin_id)
