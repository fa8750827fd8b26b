from pydantic import BaseModel, EmailStr, Field


class UserSignup(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)


class UserLogin(BaseModel):
    email: str
    password: str


class UserProfile(BaseModel):
    id: int = Field(alias="_id")
    name: str
    email: str
    role: str

    model_config = {
        "from_attributes": True,
        "populate_by_name": True
    }
