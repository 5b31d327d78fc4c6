from correspondence.models.department import Department
from correspondence.models.letter import Letter, LetterStatus, MinisterDecision
from correspondence.models.user import User, UserRole, UserStatus

__all__ = [
    "Department",
    "Letter",
    "LetterStatus",
    "MinisterDecision",
    "User",
    "UserRole",
    "UserStatus",
]
