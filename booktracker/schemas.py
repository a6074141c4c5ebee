from pydantic import BaseModel, ConfigDict, Field, field_validator


# Users
class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserLogin(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserPublic(BaseModel):
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    message: str
    user: UserPublic
    token: str


class MessageResponse(BaseModel):
    message: str


# Books
class BookIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    recommendation: str | None = Field(default=None, max_length=2000)
    published_year: int | None = Field(default=None, ge=0, le=9999)

    @field_validator("recommendation", "published_year", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        # dashboard forms post "" for untouched optional fields
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BookCreated(BaseModel):
    message: str
    bookId: int


class BookOut(BaseModel):
    id: int
    title: str
    author: str
    recommendation: str | None
    published_year: int | None
    user_id: int

    model_config = ConfigDict(from_attributes=True)
