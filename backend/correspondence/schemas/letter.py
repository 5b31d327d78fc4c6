from datetime import datetime

from pydantic import BaseModel, Field

from correspondence.models.letter import MinisterDecision
from correspondence.schemas.department import DepartmentResponse
from correspondence.services.letter_workflow import AdminReviewAction


class CreateLetterRequest(BaseModel):
    """공문 생성 요청 (문서 파일은 별도 multipart 필드)"""

    subject: str
    description: str | None = Field(default=None)
    requires_minister: bool = Field(default=False, alias="requiresMinister")

    class Config:
        populate_by_name = True


class AdminReviewRequest(BaseModel):
    """레코드 오피스 검토 요청"""

    action: AdminReviewAction
    to_department_id: int | None = Field(default=None, alias="toDepartmentId")

    class Config:
        populate_by_name = True


class MinisterDecisionRequest(BaseModel):
    """장관 결정 요청"""

    decision: MinisterDecision


class ForwardRequest(BaseModel):
    """부서 전달 요청"""

    to_department_id: int = Field(alias="toDepartmentId")

    class Config:
        populate_by_name = True


class DocumentUpload(BaseModel):
    """업로드된 문서 원본"""

    filename: str
    content_type: str | None = None
    content: bytes


class DocumentMeta(BaseModel):
    """저장된 문서 메타데이터"""

    path: str
    name: str
    type: str
    size: int


class LetterCreatorResponse(BaseModel):
    """공문 작성자 요약"""

    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class LetterResponse(BaseModel):
    """공문 응답"""

    id: int
    subject: str
    description: str | None
    document_name: str = Field(serialization_alias="documentName")
    document_type: str = Field(serialization_alias="documentType")
    document_size: int = Field(serialization_alias="documentSize")
    from_department_id: int | None = Field(serialization_alias="fromDepartmentId")
    to_department_id: int | None = Field(serialization_alias="toDepartmentId")
    from_department: DepartmentResponse | None = Field(
        default=None, serialization_alias="fromDepartment"
    )
    to_department: DepartmentResponse | None = Field(
        default=None, serialization_alias="toDepartment"
    )
    creator: LetterCreatorResponse | None = None
    requires_minister: bool = Field(serialization_alias="requiresMinister")
    status: str
    created_by_user_id: int = Field(serialization_alias="createdBy")
    reviewed_by_admin_id: int | None = Field(serialization_alias="reviewedByAdmin")
    minister_decision: str | None = Field(serialization_alias="ministerDecision")
    reviewed_at: datetime | None = Field(serialization_alias="reviewedAt")
    minister_decided_at: datetime | None = Field(serialization_alias="ministerDecidedAt")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class LetterListResponse(BaseModel):
    """공문 목록 응답"""

    items: list[LetterResponse]
    total: int
