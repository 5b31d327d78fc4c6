"""Application constants and configuration values"""

# Document upload limits
MAX_DOCUMENT_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Document formats (extension -> fallback content type)
SUPPORTED_DOCUMENT_FORMATS = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

# Letter field limits
MAX_SUBJECT_LENGTH = 255
