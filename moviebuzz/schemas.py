from __future__ import annotations
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional

IDENTIFIER_ALIASES = AliasChoices("identifier", "email", "mobile")


class RequestBody(BaseModel):

    @field_validator("*")
    @classmethod
    def encodable_text(cls, value):
        # JSON escapes can smuggle lone surrogates that hashing cannot encode.
        if isinstance(value, str):
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                raise ValueError("contains invalid characters")
        return value


class RegisterRequest(RequestBody):
    username: str
    password: str
    identifier: str = Field(validation_alias=IDENTIFIER_ALIASES)


class SendOTP(RequestBody):
    identifier: str = Field(validation_alias=IDENTIFIER_ALIASES)


class VerifyOTP(RequestBody):
    identifier: str = Field(validation_alias=IDENTIFIER_ALIASES)
    otp: str


class Credentials(RequestBody):
    username: str
    password: str


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PublicUser(CamelModel):
    id: int
    username: str
    identifier: Optional[str] = None
    is_verified: bool
    is_admin: bool


class RegisterResponse(CamelModel):
    message: str
    user_id: int
    delivered: bool
    otp: Optional[str] = None


class OTPSentResponse(CamelModel):
    message: str
    delivered: bool
    otp: Optional[str] = None


class AuthResponse(CamelModel):
    message: str
    token: str
    user: PublicUser


class TokenCheckResponse(CamelModel):
    valid: bool = True
    user: PublicUser


class UserEnvelope(CamelModel):
    user: PublicUser


class AdminCreatedResponse(CamelModel):
    message: str
    user: PublicUser


class SetupStatus(CamelModel):
    setup_required: bool
