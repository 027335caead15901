# studymaster/models/user.py
from pydantic import BaseModel, EmailStr
from typing import Optional

# Sign-in / sign-up form body
class AuthCredentials(BaseModel):
    email: EmailStr
    password: str

# The identity provider's user, reduced to what the client reads
class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None

# A signed-in session; the client passes the token along but never inspects it
class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser
