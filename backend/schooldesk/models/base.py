import enum


class StudentAttendanceStatus(enum.Enum):
    present = "present"
    absent = "absent"
    late = "late"
    excused = "excused"
    leave = "leave"


class TeacherAttendanceStatus(enum.Enum):
    present = "present"
    absent = "absent"
    leave = "leave"


class RoleEnum(enum.Enum):
    superuser = "superuser"
    admin = "admin"
    teacher = "teacher"
    staff = "staff"
