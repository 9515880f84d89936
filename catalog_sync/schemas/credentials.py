"""Per-source credential models.

The sync core never looks inside these; they travel from the request to the
source adapter untouched.
"""

from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from catalog_sync.domain.errors import UnknownSourceError


class OdooCredentials(BaseModel):
    url: str = Field(min_length=1, description="Odoo base URL")
    database: str = Field(min_length=1, description="Odoo database name")
    username: str = Field(min_length=1)
    password: SecretStr

    model_config = {"extra": "forbid"}

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ShopifyCredentials(BaseModel):
    shop: str = Field(min_length=1, description="Shop domain, e.g. my-store.myshopify.com")
    access_token: SecretStr
    api_version: str | None = Field(default=None, description="Overrides the configured API version")

    model_config = {"extra": "forbid"}

    @field_validator("shop")
    @classmethod
    def normalize_shop(cls, v: str) -> str:
        v = v.removeprefix("https://").removeprefix("http://").rstrip("/")
        if "." not in v:
            v = f"{v}.myshopify.com"
        return v


class TrendyolCredentials(BaseModel):
    seller_id: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    api_secret: SecretStr

    model_config = {"extra": "forbid"}


class AmazonCredentials(BaseModel):
    seller_id: str = Field(min_length=1)
    access_token: SecretStr
    marketplace_id: str | None = Field(default=None, description="Overrides the configured marketplace")

    model_config = {"extra": "forbid"}


CREDENTIAL_MODELS: dict[str, type[BaseModel]] = {
    "odoo": OdooCredentials,
    "shopify": ShopifyCredentials,
    "trendyol": TrendyolCredentials,
    "amazon": AmazonCredentials,
}


def parse_credentials(source: str, data: dict[str, Any] | BaseModel) -> BaseModel:
    """Validate raw credential data against the model for ``source``.

    Raises:
        UnknownSourceError: If no credential model exists for the source
        pydantic.ValidationError: If the data does not fit the model
    """
    model = CREDENTIAL_MODELS.get(source)
    if model is None:
        raise UnknownSourceError(source)
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return model.model_validate(data)
