from datetime import date

from fastapi import APIRouter, Depends, Query

from academy.routers.common import service_errors
from academy.services.report_service import admin_dashboard, attendance_report, daily_report
from academy.store import RecordStore, get_store
from academy.utils.timezone import city_label, display_name, timezone_offset_label


router = APIRouter(prefix='/reports', tags=['Reports'])


@router.get('/daily')
def daily_report_api(day: date, timezone: str | None = None, store: RecordStore = Depends(get_store)):
    with service_errors():
        return daily_report(store, day, timezone=timezone)


@router.get('/attendance')
def attendance_report_api(
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=2000, le=2100),
    student_id: str | None = None,
    store: RecordStore = Depends(get_store),
):
    with service_errors():
        return attendance_report(store, month, year, student_id=student_id)


@router.get('/dashboard')
def admin_dashboard_api(timezone: str | None = None, store: RecordStore = Depends(get_store)):
    with service_errors():
        return admin_dashboard(store, timezone=timezone)


@router.get('/timezones/{zone:path}')
def timezone_label_api(zone: str):
    with service_errors():
        return {
            'zone': zone,
            'offset': timezone_offset_label(zone),
            'display_name': display_name(zone),
            'city_label': city_label(zone),
        }
