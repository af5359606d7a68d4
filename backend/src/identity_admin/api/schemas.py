"""Pydantic schemas for identity requests, records and envelopes."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from typing import ClassVar
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class RequestModel(BaseModel):
    """Base for decoded request bodies.

    Missing fields take empty defaults so handlers can report their own
    validation messages; unknown fields are ignored.
    """

    model_config = ConfigDict(extra="ignore")


# --- Requests ---


class NewUser(RequestModel):
    """User fields supplied on create or delete."""

    name: str = ""
    email_address: str = ""
    password: str = ""


class UserRequest(RequestModel):
    """Add, list or delete users within a pool."""

    user_pool_id: str = ""
    user: NewUser = Field(default_factory=NewUser)


class LoginRequest(RequestModel):
    """Password-based sign in."""

    email_address: str = ""
    password: str = ""
    client_id: str = ""


class ForgotPasswordRequest(RequestModel):
    """Start or confirm a password reset."""

    email_address: str = ""
    password: str = ""
    client_id: str = ""
    confirmation_code: str = ""


class CreatePoolRequest(RequestModel):
    """Create a user pool with its message templates."""

    pool_name: str = ""
    email_message: str = ""
    email_subject: str = ""
    sms_message: str = ""
    email_verify_msg: str = ""
    email_verify_sub: str = ""
    sms_auth_msg: str = ""
    sms_verify_msg: str = ""
    wait_days: int = 0


class ListPoolsRequest(RequestModel):
    max: Optional[int] = None


class AnalyticsConfig(RequestModel):
    """Pinpoint analytics settings for a pool client."""

    application_id: Optional[str] = None
    external_id: Optional[str] = None
    role_arn: Optional[str] = None
    user_data_shared: bool = False


class UserPoolClientRequest(RequestModel):
    """Create or update an application client within a pool.

    On update only the fields present in the request body replace the
    client's current configuration.
    """

    user_pool_id: str = ""
    client_id: str = ""
    client_name: str = ""
    allowed_oauth_flows: Optional[List[str]] = None
    allowed_oauth_flows_userpool_client: bool = False
    allowed_oauth_scopes: Optional[List[str]] = None
    analytics_config: Optional[AnalyticsConfig] = None
    callback_url: Optional[List[str]] = None
    default_redirect_uri: Optional[str] = None
    explicit_auth_flows: Optional[List[str]] = None
    generate_secret: bool = False
    logout_urls: Optional[List[str]] = None
    read_attributes: Optional[List[str]] = None
    refresh_token_validity: int = 0
    supported_identity_providers: Optional[List[str]] = None
    write_attributes: Optional[List[str]] = None


class ListUserPoolClientsRequest(RequestModel):
    """List clients of a pool, or name one client to describe."""

    pool_id: str = ""
    client_id: str = ""
    max: Optional[int] = None


# --- Records ---


class UserRecord(BaseModel):
    name: str = ""
    email_address: str = ""
    password: Optional[str] = None
    email_verified: Optional[bool] = None
    is_confirmed: Optional[bool] = None


class PoolRecord(BaseModel):
    pool_id: str
    pool_name: str
    created_date: Optional[datetime] = None


class ClientRecord(BaseModel):
    """A pool client; configuration is present when it was described."""

    client_id: str
    client_name: str = ""
    user_pool_id: Optional[str] = None
    allowed_oauth_flows: Optional[List[str]] = None
    allowed_oauth_flows_userpool_client: Optional[bool] = None
    allowed_oauth_scopes: Optional[List[str]] = None
    analytics_config: Optional[AnalyticsConfig] = None
    callback_url: Optional[List[str]] = None
    default_redirect_uri: Optional[str] = None
    explicit_auth_flows: Optional[List[str]] = None
    logout_urls: Optional[List[str]] = None
    read_attributes: Optional[List[str]] = None
    refresh_token_validity: Optional[int] = None
    supported_identity_providers: Optional[List[str]] = None
    write_attributes: Optional[List[str]] = None
    created_date: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None


# --- Envelopes ---


class Envelope(BaseModel):
    """Uniform result of every operation.

    ``response_code`` is 200 exactly when the operation succeeded; the
    item list is empty otherwise.
    """

    response_code: int
    message: str

    # Name of the list field holding result items.
    items_field: ClassVar[str] = ""


class UserEnvelope(Envelope):
    items_field: ClassVar[str] = "users"
    users: List[UserRecord] = Field(default_factory=list)


class PoolEnvelope(Envelope):
    items_field: ClassVar[str] = "pools"
    pools: List[PoolRecord] = Field(default_factory=list)


class ClientEnvelope(Envelope):
    items_field: ClassVar[str] = "clients"
    clients: List[ClientRecord] = Field(default_factory=list)


class ResultEnvelope(Envelope):
    """Envelope for pass-through operations returning provider payloads."""

    items_field: ClassVar[str] = "results"
    results: List[dict[str, Any]] = Field(default_factory=list)
