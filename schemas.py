from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    first_name: str
    last_name: str
    phone: str


class User(BaseModel):
    username: str
    first_name: str
    last_name: str
    phone: str


class UserDetail(User):
    join_at: datetime
    last_login_at: datetime | None = None


class UserInDB(User):
    password: str


class MessageFrom(BaseModel):
    """A message sent by a user, with the recipient embedded."""
    id: int
    to_user: User
    body: str
    sent_at: datetime
    read_at: datetime | None = None


class MessageTo(BaseModel):
    """A message received by a user, with the sender embedded."""
    id: int
    from_user: User
    body: str
    sent_at: datetime
    read_at: datetime | None = None


class MessageCreate(BaseModel):
    from_username: str
    to_username: str
    body: str = Field(min_length=1)


class Message(BaseModel):
    id: int
    from_username: str
    to_username: str
    body: str
    sent_at: datetime


class MessageDetail(BaseModel):
    id: int
    from_user: User
    to_user: User
    body: str
    sent_at: datetime
    read_at: datetime | None = None


class MessageRead(BaseModel):
    id: int
    read_at: datetime
