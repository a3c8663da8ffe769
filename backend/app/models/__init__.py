from app.models.school import (  # noqa: F401
    ClassSubject,
    SchoolClass,
    Subject,
    Teacher,
    TeacherClass,
    TeacherSubject,
)
from app.models.timetable import Timetable, TimetableEntry  # noqa: F401
from app.models.timetable_config import TimetableConfig  # noqa: F401
from app.models.timetable_version import ChangeAction, TimetableChangeLog, TimetableVersion  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
