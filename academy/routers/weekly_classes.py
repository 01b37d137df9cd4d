from fastapi import APIRouter, Depends, Query

from academy.routers.common import service_errors
from academy.schemas import DayOfWeek, WeeklyClassCreateRequest, WeeklyClassUpdateRequest
from academy.services.weekly_class_service import (
    create_weekly_class,
    deactivate_weekly_class,
    get_weekly_class,
    list_weekly_classes,
    update_weekly_class,
)
from academy.store import RecordStore, get_store


router = APIRouter(prefix='/weekly-classes', tags=['Weekly Classes'])


@router.get('')
def list_weekly_classes_api(
    active_only: bool = True,
    day: DayOfWeek | None = None,
    search: str = Query(default=''),
    store: RecordStore = Depends(get_store),
):
    with service_errors():
        return [row.model_dump(mode='json') for row in list_weekly_classes(store, active_only=active_only, day=day, search=search)]


@router.post('', status_code=201)
def create_weekly_class_api(payload: WeeklyClassCreateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = create_weekly_class(store, **payload.model_dump())
    return row.model_dump(mode='json')


@router.get('/{weekly_class_id}')
def get_weekly_class_api(weekly_class_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        return get_weekly_class(store, weekly_class_id).model_dump(mode='json')


@router.patch('/{weekly_class_id}')
def update_weekly_class_api(
    weekly_class_id: str,
    payload: WeeklyClassUpdateRequest,
    store: RecordStore = Depends(get_store),
):
    with service_errors():
        row = update_weekly_class(store, weekly_class_id, **payload.model_dump(exclude_none=True))
    return row.model_dump(mode='json')


@router.delete('/{weekly_class_id}')
def deactivate_weekly_class_api(weekly_class_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = deactivate_weekly_class(store, weekly_class_id)
    return {'ok': True, 'id': row.id, 'is_active': row.is_active}
