# kino/schemas/auth.py
from pydantic import EmailStr, Field

from kino.schemas.base import CamelModel


class RegisterIn(CamelModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    display_name: str | None = Field(default=None, max_length=100)


class RegisterOut(CamelModel):
    user_id: str
    message: str = "Registration successful. Check your email for a verification code."


class VerifyEmailIn(CamelModel):
    # Lengths are not capped here: a malformed code is just a wrong code.
    user_id: str = Field(min_length=1)
    token: str = Field(min_length=1)


class VerifyOut(CamelModel):
    message: str
    token: str
    username: str


class ResendVerifyIn(CamelModel):
    email: EmailStr


class LoginIn(CamelModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)


class LoginOut(CamelModel):
    username: str
    email: str
    token: str


class MessageOut(CamelModel):
    message: str
