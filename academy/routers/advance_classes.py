from fastapi import APIRouter, Depends

from academy.routers.common import service_errors
from academy.schemas import AdvanceClassCreateRequest, AdvanceStatus
from academy.services.advance_class_service import (
    get_advance_class,
    list_advance_classes,
    mark_advance_cancelled,
    mark_advance_completed,
    schedule_advance_class,
)
from academy.store import RecordStore, get_store


router = APIRouter(prefix='/advance-classes', tags=['Advance Classes'])


@router.get('')
def list_advance_classes_api(status: AdvanceStatus | None = None, store: RecordStore = Depends(get_store)):
    with service_errors():
        return [row.model_dump(mode='json') for row in list_advance_classes(store, status=status)]


@router.post('', status_code=201)
def schedule_advance_class_api(payload: AdvanceClassCreateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        row = schedule_advance_class(
            store,
            weekly_class_id=payload.weekly_class_id,
            date=payload.date,
            time=payload.time,
            reason=payload.reason,
            timezone=payload.timezone,
        )
    return row.model_dump(mode='json')


@router.get('/{advance_id}')
def get_advance_class_api(advance_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        return get_advance_class(store, advance_id).model_dump(mode='json')


@router.post('/{advance_id}/complete')
def complete_advance_class_api(advance_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        return mark_advance_completed(store, advance_id).model_dump(mode='json')


@router.post('/{advance_id}/cancel')
def cancel_advance_class_api(advance_id: str, store: RecordStore = Depends(get_store)):
    with service_errors():
        return mark_advance_cancelled(store, advance_id).model_dump(mode='json')
