from fastapi import APIRouter, Depends

from academy.routers.common import service_errors
from academy.schemas import SalaryGenerateRequest
from academy.services.salary_service import generate_for_period, list_salary_reports
from academy.store import RecordStore, get_store


router = APIRouter(prefix='/salary-reports', tags=['Salary Reports'])


@router.get('')
def list_salary_reports_api(
    month: int | None = None,
    year: int | None = None,
    teacher_id: str | None = None,
    store: RecordStore = Depends(get_store),
):
    with service_errors():
        rows = list_salary_reports(store, month=month, year=year, teacher_id=teacher_id)
    return [row.model_dump(mode='json') for row in rows]


@router.post('/generate')
def generate_salary_reports_api(payload: SalaryGenerateRequest, store: RecordStore = Depends(get_store)):
    with service_errors():
        rows = generate_for_period(store, payload.month, payload.year)
    return {'month': payload.month, 'year': payload.year, 'reports': [row.model_dump(mode='json') for row in rows]}
