from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    # stored and served with camelCase keys (userId, passwordHash)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(Record):
    id: int
    email: str
    password_hash: str


class Link(Record):
    id: int
    user_id: int
    url: str
    title: str
    favicon: str
    summary: str
    tags: List[str] = Field(default_factory=list)
    order: int = 0


class Database(Record):
    users: List[User] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)


class CurrentUser(BaseModel):
    """Identity decoded from a bearer token."""

    id: int
    email: str
