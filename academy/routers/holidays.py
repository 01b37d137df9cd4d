from fastapi import APIRouter, Depends

from academy.routers.common import service_errors
from academy.schemas import HolidayCreateRequest, HolidaySyncRequest, HolidayUpdateRequest
from academy.services.holiday_service import add_holiday, list_holidays, remove_holiday, sync_public_holidays, update_holiday
from academy.store import RecordStore, get_store


router = APIRouter(prefix='/holidays', tags=['Holidays'])


@router.get('')
def list_holidays_api(year: int | None = None, store: RecordStore = Depends(get_store)):
    with service_errors():
        return [row.model_dump(mode='json') for row in list_holidays(store, year=year)]


@router.post('', status_code=201)
def add_holiday_api(payload: HolidayCreateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        return add_holiday(store, name=payload.name, date=payload.date).model_dump(mode='json')


@router.post('/sync')
def sync_holidays_api(payload: HolidaySyncRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        return sync_public_holidays(store, country_code=payload.country_code, year=payload.year)


@router.patch('/{holiday_id}')
def update_holiday_api(holiday_id: str, payload: HolidayUpdateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        return update_holiday(store, holiday_id, name=payload.name, date=payload.date).model_dump(mode='json')


@router.delete('/{holiday_id}')
def remove_holiday_api(holiday_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        remove_holiday(store, holiday_id)
    return {'ok': True, 'id': holiday_id}
