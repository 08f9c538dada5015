from pydantic import BaseModel, Field

class AdminLogin(BaseModel):
    username: str
    password: str

class AdminOut(BaseModel):
    id: int
    username: str
    is_admin: bool

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
