from fastapi import HTTPException, status


class DirectoryError(HTTPException):
    """Base error for the user directory; carries an HTTP-style status code."""

    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundError(DirectoryError):
    def __init__(self, detail: str):
        super().__init__(detail, status_code=status.HTTP_404_NOT_FOUND)


class DuplicateUserError(DirectoryError):
    def __init__(self, username: str):
        super().__init__("Username already registered", status_code=status.HTTP_400_BAD_REQUEST)
        self.username = username
