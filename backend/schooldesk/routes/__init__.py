from .auth import auth_bp
from .base_route import base_bp
from .schools import schools_bp
from .classes import classes_bp, sections_bp
from .students import students_bp
from .teachers import teachers_bp
from .subjects import subjects_bp
from .attendance import attendance_bp
from .timetable import timetable_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(schools_bp, url_prefix='/schools')
    app.register_blueprint(classes_bp, url_prefix='/classes')
    app.register_blueprint(sections_bp, url_prefix='/sections')
    app.register_blueprint(students_bp, url_prefix='/students')
    app.register_blueprint(teachers_bp, url_prefix='/teachers')
    app.register_blueprint(subjects_bp, url_prefix='/subjects')
    app.register_blueprint(attendance_bp, url_prefix='/attendance')
    app.register_blueprint(timetable_bp, url_prefix='/timetable')
