class ConferenceCentralError(Exception):
    """Base error rendered by the API exception handler"""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(ConferenceCentralError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authorization required"):
        super().__init__(message)


class BadRequestError(ConferenceCentralError):
    status_code = 400
    error_code = "BAD_REQUEST"


class InvalidKeyError(BadRequestError):
    """A websafe key string that does not decode to a conference key"""

    def __init__(self, websafe_key: str):
        super().__init__(f"Invalid conference key: {websafe_key}")
        self.websafe_key = websafe_key


class InvalidQueryError(BadRequestError):
    pass


class NotFoundError(ConferenceCentralError):
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(ConferenceCentralError):
    status_code = 409
    error_code = "CONFLICT"


class ForbiddenError(ConferenceCentralError):
    status_code = 403
    error_code = "FORBIDDEN"
