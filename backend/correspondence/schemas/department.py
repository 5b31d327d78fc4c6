from pydantic import BaseModel


class DepartmentResponse(BaseModel):
    """부서 응답"""

    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class DepartmentListResponse(BaseModel):
    """부서 목록 응답"""

    items: list[DepartmentResponse]
