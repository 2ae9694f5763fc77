from .User import User, Role, TokenBlocklist
from .School import School
from .SchoolClass import SchoolClass, Section
from .Student import Student
from .Teacher import Teacher
from .Subject import Subject
from .AttendanceRecord import StudentAttendance, TeacherAttendance
from .Timetable import TimetableDay, TimetableSlot
from .AuditLog import AuditLog
from .base import StudentAttendanceStatus, TeacherAttendanceStatus, RoleEnum
