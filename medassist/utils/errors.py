# medassist/utils/errors.py

from fastapi import HTTPException


class BadRequestError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class UnauthorizedRequestError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=401, detail=detail)

class ForbiddenError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=403, detail=detail)

class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


# Domain errors raised below the HTTP boundary

class KnowledgeBaseError(Exception):
    """The knowledge corpus exists but could not be read."""

class VocabularyError(Exception):
    """The vocabulary tables are missing or malformed."""
