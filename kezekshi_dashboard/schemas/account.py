from typing import Any, Dict, List, Optional

from pydantic import BaseModel

class ProfileOut(BaseModel):
    user: Dict[str, Any]
    region_name: Any = ""
    school_name: Any = ""
    photo_url: Optional[str] = None
    regions: List[Dict[str, Any]] = []
    schools: List[Dict[str, Any]] = []

class ProfileUpdate(BaseModel):
    fullname: str = ""
    phone: str = ""
    iin: str = ""

class LoginRequest(BaseModel):
    phone: str
    password: str
    device_token: str = ""

class LoginOut(BaseModel):
    access_token: str
    profile: Optional[Dict[str, Any]] = None
    landing_page: str

class PhoneRequest(BaseModel):
    phone: str

class OtpVerifyRequest(BaseModel):
    phone: str
    code: str

class RegisterRequest(BaseModel):
    phone: str
    password: str
    first_name: str
    last_name: str
    middle_name: str = ""
    iin: str

class ResetPasswordRequest(BaseModel):
    phone: str
    password: str
