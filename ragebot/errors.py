from typing import Optional


class RagebotError(Exception):
    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class BadRequest(RagebotError):
    status_code = 400
    message = "Bad request"


class UserAlreadyExists(RagebotError):
    status_code = 400
    message = "User already exists"


class InvalidCredentials(RagebotError):
    status_code = 401
    message = "Invalid email or password"


class Unauthorized(RagebotError):
    status_code = 401
    message = "Unauthorized"


class AssistantError(RagebotError):
    status_code = 500
    message = "Something went wrong"


class EmptyCompletion(AssistantError):
    message = "No response from the model."
