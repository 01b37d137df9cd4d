from datetime import date

from fastapi import APIRouter, Depends

from academy.config import settings
from academy.core.time_provider import default_time_provider
from academy.routers.common import service_errors
from academy.schemas import (
    ClassStatus,
    DailyClassCreateRequest,
    ExpansionRequest,
    RatingRequest,
    RescheduleRequest,
    ShiftTeacherRequest,
    StatusChangeRequest,
    Student,
    Teacher,
)
from academy.services.class_expansion_service import expand_weekly_classes
from academy.services.daily_class_service import (
    create_daily_class,
    daily_class_stats,
    get_daily_class,
    list_daily_classes,
    present_daily_class,
    rate_daily_class,
    reschedule_daily_class,
    shift_teacher,
    soft_delete_daily_class,
    transition_status,
)
from academy.services.records import load_all
from academy.store import RecordStore, get_store
from academy.store.collections import CHILDREN, TEACHERS


router = APIRouter(prefix='/daily-classes', tags=['Daily Classes'])


def _present(store: RecordStore, rows, timezone: str | None):
    teachers = load_all(store, TEACHERS, Teacher)
    students = load_all(store, CHILDREN, Student)
    zone = timezone or settings.app_timezone
    return [present_daily_class(row, teachers=teachers, students=students, timezone=zone) for row in rows]


@router.get('')
def list_daily_classes_api(
    start_date: date | None = None,
    end_date: date | None = None,
    status: ClassStatus | None = None,
    course_id: str | None = None,
    teacher_id: str | None = None,
    student_id: str | None = None,
    include_inactive: bool = False,
    timezone: str | None = None,
    store: RecordStore = Depends(get_store),
):
    with service_errors():
        rows = list_daily_classes(
            store,
            start_date=start_date,
            end_date=end_date,
            status=status,
            course_id=course_id,
            teacher_id=teacher_id,
            student_id=student_id,
            include_inactive=include_inactive,
        )
        return _present(store, rows, timezone)


@router.get('/stats')
def daily_class_stats_api(store: RecordStore = Depends(get_store)):
    with service_errors():
        rows = list_daily_classes(store)
        return daily_class_stats(rows, today=default_time_provider.utc_now().date())


@router.post('', status_code=201)
def create_daily_class_api(payload: DailyClassCreateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = create_daily_class(store, **payload.model_dump())
    return row.model_dump(mode='json')


@router.post('/expand')
def expand_weekly_classes_api(payload: ExpansionRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        return expand_weekly_classes(store, payload.start_date, payload.end_date)


@router.get('/{class_id}')
def get_daily_class_api(class_id: str, timezone: str | None = None, store: RecordStore = Depends(get_store)):
    with service_errors():
        return _present(store, [get_daily_class(store, class_id)], timezone)[0]


@router.post('/{class_id}/status')
def change_status_api(class_id: str, payload: StatusChangeRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = transition_status(store, class_id, payload.status)
    return row.model_dump(mode='json')


@router.post('/{class_id}/reschedule')
def reschedule_api(class_id: str, payload: RescheduleRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = reschedule_daily_class(
            store,
            class_id,
            new_date=payload.new_date,
            new_time=payload.new_time,
            reason=payload.reason,
            timezone=payload.timezone,
        )
    return row.model_dump(mode='json')


@router.post('/{class_id}/shift-teacher')
def shift_teacher_api(class_id: str, payload: ShiftTeacherRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = shift_teacher(store, class_id, new_teacher_id=payload.new_teacher_id, reason=payload.reason)
    return row.model_dump(mode='json')


@router.post('/{class_id}/rating')
def rate_api(class_id: str, payload: RatingRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = rate_daily_class(store, class_id, rating=payload.rating, feedback=payload.feedback)
    return row.model_dump(mode='json')


@router.delete('/{class_id}')
def soft_delete_api(class_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = soft_delete_daily_class(store, class_id)
    return {'ok': True, 'id': row.id, 'is_active': row.is_active}
