from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.models.department import Department
from correspondence.schemas.department import DepartmentListResponse, DepartmentResponse


class DepartmentService:
    """부서 조회 서비스 (읽기 전용)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_departments(self) -> DepartmentListResponse:
        """부서 목록 (이름순)"""
        result = await self.db.execute(select(Department).order_by(Department.name))
        departments = result.scalars().all()
        return DepartmentListResponse(
            items=[DepartmentResponse.model_validate(d) for d in departments]
        )

    async def department_exists(self, department_id: int) -> bool:
        """부서 존재 여부"""
        result = await self.db.execute(
            select(Department.id).where(Department.id == department_id)
        )
        return result.scalar_one_or_none() is not None
