from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class DayOfWeek(str, Enum):
    MONDAY = 'Monday'
    TUESDAY = 'Tuesday'
    WEDNESDAY = 'Wednesday'
    THURSDAY = 'Thursday'
    FRIDAY = 'Friday'
    SATURDAY = 'Saturday'
    SUNDAY = 'Sunday'

    @classmethod
    def from_date(cls, day: date) -> 'DayOfWeek':
        return list(cls)[day.weekday()]

    @property
    def weekday(self) -> int:
        return list(DayOfWeek).index(self)


class ClassStatus(str, Enum):
    SCHEDULED = 'scheduled'
    RUNNING = 'running'
    TAKEN = 'taken'
    ABSENT = 'absent'
    LEAVE = 'leave'
    DECLINED = 'declined'
    SUSPENDED = 'suspended'
    RESCHEDULED = 'rescheduled'
    REFUSED = 'refused'
    TRIAL = 'trial'
    ADVANCE = 'advance'


INITIAL_STATUSES = (ClassStatus.SCHEDULED, ClassStatus.TRIAL, ClassStatus.ADVANCE)


class AdvanceStatus(str, Enum):
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class StoredModel(BaseModel):
    """A typed view of one store document; ``id`` is the store key, not part of the payload."""

    model_config = ConfigDict(extra='ignore', use_enum_values=False)

    id: str = ''

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode='json', exclude={'id'})

    @classmethod
    def from_record(cls, record_id: str, payload: dict[str, Any]):
        return cls.model_validate({**payload, 'id': record_id})


class SoftDeletable(StoredModel):
    # None means "never flagged"; only an explicit False archives the record.
    is_active: bool | None = None

    @property
    def active(self) -> bool:
        return self.is_active is not False


class Teacher(SoftDeletable):
    name: str = 'Unknown'
    email: str = ''
    timezone: str | None = None
    hourly_rate: float | None = None


class Student(SoftDeletable):
    name: str = 'Unknown'
    email: str = ''
    timezone: str | None = None
    teacher_id: str | None = None


class Course(StoredModel):
    title: str = ''
    status: str = 'active'


class WeeklyClass(SoftDeletable):
    teacher_id: str
    teacher_name: str = 'Unknown'
    student_id: str
    student_name: str = 'Unknown'
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    subject: str = ''
    created_at: str = ''
    updated_at: str | None = None


class TeacherShift(BaseModel):
    from_teacher_id: str
    to_teacher_id: str
    reason: str
    shifted_at: str
    shifted_by: str = 'Admin'


class RescheduleEntry(BaseModel):
    old_date: str
    old_time: str
    new_date: str
    new_time: str
    reason: str
    rescheduled_at: str
    rescheduled_by: str = 'Admin'


class DailyClass(SoftDeletable):
    teacher_id: str
    student_id: str
    weekly_class_id: str | None = None
    advance_class_id: str | None = None
    occurrence_date: str | None = None
    course_id: str | None = None
    course_name: str | None = None
    appointment_date: str
    appointment_time: str
    duration: int = 60
    start_time: str | None = None
    end_time: str | None = None
    status: ClassStatus = ClassStatus.SCHEDULED
    history: list[str] = Field(default_factory=list)
    created_at: str = ''
    updated_at: str | None = None
    online_time: str | None = None
    completed_at: str | None = None
    notes: str | None = None
    zoom_link: str | None = None
    rating: int | None = None
    feedback: str | None = None
    rated_at: str | None = None
    shift_history: list[TeacherShift] = Field(default_factory=list)
    reschedule_history: list[RescheduleEntry] = Field(default_factory=list)


class AdvanceClass(StoredModel):
    weekly_class_id: str
    scheduled_date: str
    scheduled_time: str
    reason: str = ''
    status: AdvanceStatus = AdvanceStatus.SCHEDULED
    teacher_name: str = 'N/A'
    student_name: str = 'N/A'
    subject: str = 'N/A'
    daily_class_id: str | None = None
    created_at: str = ''
    updated_at: str | None = None


class PublicHoliday(StoredModel):
    name: str
    date: str
    country_code: str | None = None
    created_at: str = ''
    updated_at: str | None = None


class SalaryReport(StoredModel):
    teacher_id: str
    teacher_name: str = 'Unknown'
    month: int
    year: int
    total_classes: int = 0
    completed_classes: int = 0
    total_hours: float = 0.0
    rate_per_hour: float = 0.0
    total_salary: float = 0.0
    created_at: str = ''


# Request payloads


class WeeklyClassCreateRequest(BaseModel):
    teacher_id: str
    student_id: str
    day_of_week: DayOfWeek
    start_time: str = Field(pattern=r'^\d{2}:\d{2}$')
    end_time: str = Field(pattern=r'^\d{2}:\d{2}$')
    subject: str = ''


class WeeklyClassUpdateRequest(BaseModel):
    teacher_id: str | None = None
    student_id: str | None = None
    day_of_week: DayOfWeek | None = None
    start_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    end_time: str | None = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    subject: str | None = None


class DailyClassCreateRequest(BaseModel):
    teacher_id: str
    student_id: str
    date: str
    time: str
    timezone: str | None = None
    duration: int = Field(default=60, ge=1, le=240)
    course_id: str | None = None
    zoom_link: str = ''
    notes: str = ''
    status: Literal['scheduled', 'trial', 'advance'] = 'scheduled'


class StatusChangeRequest(BaseModel):
    status: ClassStatus


class RescheduleRequest(BaseModel):
    new_date: str
    new_time: str
    reason: str = Field(min_length=1)
    timezone: str | None = None


class ShiftTeacherRequest(BaseModel):
    new_teacher_id: str
    reason: str = Field(min_length=1)


class RatingRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: str = ''


class AdvanceClassCreateRequest(BaseModel):
    weekly_class_id: str
    date: str
    time: str
    reason: str = ''
    timezone: str | None = None


class HolidayCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    date: str


class HolidayUpdateRequest(BaseModel):
    name: str | None = None
    date: str | None = None


class HolidaySyncRequest(BaseModel):
    country_code: str = Field(min_length=2, max_length=2)
    year: int = Field(ge=2000, le=2100)


class SalaryGenerateRequest(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class ExpansionRequest(BaseModel):
    start_date: date
    end_date: date
