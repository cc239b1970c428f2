from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional, Union


class ApiKeyMetadata(BaseModel):
    """Stored API key record, as returned by the key service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    key: str
    account_id: str = Field("", alias="accountId")
    creator_wallet_address: str = Field("", alias="creatorWalletAddress")
    secret_hash: Optional[str] = Field(None, alias="secretHash")
    domains: List[str] = Field(default_factory=list)
    bundle_ids: List[str] = Field(default_factory=list, alias="bundleIds")
    wallet_addresses: List[str] = Field(default_factory=list, alias="walletAddresses")
    services: List[Any] = Field(default_factory=list)

    def public_view(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"secret_hash"})


class ClientAuthorizationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    secret_key_hash: Optional[str] = Field(None, alias="secretKeyHash")
    bundle_id: Optional[str] = Field(None, alias="bundleId")
    origin: Optional[str] = None


class AuthorizationSuccess(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    authorized: Literal[True] = True
    api_key_meta: ApiKeyMetadata = Field(..., alias="apiKeyMeta")


class AuthorizationFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    authorized: Literal[False] = False
    error_message: str = Field(..., alias="errorMessage")
    error_code: str = Field(..., alias="errorCode")
    status: int = 401


AuthorizationResult = Union[AuthorizationSuccess, AuthorizationFailure]


class AuthorizeRequest(ClientAuthorizationPayload):
    client_id: str = Field(..., alias="clientId", min_length=1)

    def to_payload(self) -> ClientAuthorizationPayload:
        return ClientAuthorizationPayload(
            secret_key_hash=self.secret_key_hash,
            bundle_id=self.bundle_id,
            origin=self.origin,
        )


class ErrorDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    message: str
    status_code: int = Field(..., alias="statusCode")


class ErrorResponse(BaseModel):
    error: ErrorDetail
