"""공문 워크플로 에러 타입

모든 에러는 ValueError를 상속하며 str(error)는 에러 코드를 반환한다.
API 레이어의 handle_service_error가 코드로 HTTP 응답을 매핑한다.
"""


class LetterError(ValueError):
    """공문 워크플로 에러 기본 클래스"""

    default_code = "VALIDATION_ERROR"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message
        super().__init__(self.code)


class AuthorizationError(LetterError):
    """호출자 역할로는 수행할 수 없는 액션 (상태 조회 전에 판정)"""

    default_code = "PERMISSION_DENIED"


class InvalidStateError(LetterError):
    """현재 상태가 액션의 출발 상태와 맞지 않음"""

    default_code = "INVALID_STATE"

    def __init__(
        self,
        current_status: str | None = None,
        action: str | None = None,
        message: str | None = None,
    ):
        self.current_status = current_status
        self.action = action
        super().__init__(
            message=message or f"Cannot {action} a letter in status {current_status}"
        )


class LetterValidationError(LetterError):
    """누락되었거나 잘못된 파라미터 (존재하지 않는 부서, 문서 누락 등)"""

    default_code = "VALIDATION_ERROR"


class NotFoundError(LetterError):
    """존재하지 않는 공문"""

    default_code = "LETTER_NOT_FOUND"
