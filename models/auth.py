from pydantic import BaseModel, EmailStr


# -----------------------------------------------------
# LOGIN REQUEST (email/password against the identity provider)
# -----------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# -----------------------------------------------------
# TOKEN RESPONSE (session token)
# -----------------------------------------------------
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
