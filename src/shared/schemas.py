"""Response envelope shared by error handlers."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ResponseEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None

    @classmethod
    def failure(cls, message: str, data: T | None = None) -> "ResponseEnvelope[T]":
        return cls(success=False, message=message, data=data)
