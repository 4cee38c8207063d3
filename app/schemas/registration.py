from pydantic import BaseModel


class RegistrationResult(BaseModel):
    result: bool
    reason: str = ""
