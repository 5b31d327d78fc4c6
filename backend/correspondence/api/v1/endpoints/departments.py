from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.api.dependencies import get_caller
from correspondence.core.database import get_db
from correspondence.schemas import CallerIdentity, DepartmentListResponse, ErrorResponse
from correspondence.services.department_service import DepartmentService

router = APIRouter(prefix="/departments", tags=["Departments"])


def get_department_service(db: Annotated[AsyncSession, Depends(get_db)]) -> DepartmentService:
    """DepartmentService 의존성"""
    return DepartmentService(db)


@router.get(
    "",
    response_model=DepartmentListResponse,
    responses={401: {"model": ErrorResponse}},
)
async def list_departments(
    _caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[DepartmentService, Depends(get_department_service)],
) -> DepartmentListResponse:
    """부서 목록 (전달 대상 선택용)"""
    return await service.list_departments()
