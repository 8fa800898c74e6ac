from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

RestaurantType = Literal["fast-casual", "fine-dining", "cafe", "bakery", "food-truck", "catering", "other"]
PlanType = Literal["trial", "pro", "enterprise"]


class CamelModel(BaseModel):
    """Snake-case fields on the Python side, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class Location(CamelModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "US"


class RegisterPayload(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=200)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    restaurant_name: str = Field(..., min_length=1, max_length=120)
    restaurant_type: RestaurantType = "other"
    location: Optional[Location] = None
    plan_type: PlanType = "trial"


class LoginPayload(CamelModel):
    # Plain string: generated kiosk addresses use a reserved domain.
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class LoginByNamePayload(CamelModel):
    restaurant_name: str = Field(..., min_length=1, max_length=120)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class TeamLoginPayload(CamelModel):
    restaurant_name: str = Field(..., min_length=1, max_length=120)
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=50)


class RefreshTokenPayload(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordPayload(CamelModel):
    email: EmailStr


class ResetPasswordPayload(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=200)


class ChangePasswordPayload(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=200)


class AcceptInvitePayload(CamelModel):
    token: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class RequestAccessPayload(CamelModel):
    head_chef_id: int = Field(..., ge=1)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class TeamMemberUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    is_active: Optional[bool] = None
    status: Optional[Literal["pending", "active", "rejected"]] = None
    permissions: Optional[dict[str, bool]] = None
    issue_tokens: bool = False


class PendingDecision(CamelModel):
    status: Literal["active", "rejected"]
    issue_tokens: bool = False


class RestaurantUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    type: Optional[RestaurantType] = None
    location: Optional[Location] = None


class PlanUpdate(CamelModel):
    plan_type: PlanType


class RestaurantStatusUpdate(CamelModel):
    status: Literal["trial", "active", "suspended", "cancelled"]


class AdminUserUpdate(CamelModel):
    role: Optional[Literal["super-admin", "head-chef", "team-member", "user"]] = None
    is_active: Optional[bool] = None
