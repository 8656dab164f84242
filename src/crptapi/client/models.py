# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DOCUMENT_FORMAT_MANUAL = "MANUAL"
DOCUMENT_TYPE_INTRODUCE_GOODS = "LP_INTRODUCE_GOODS"
CREATE_DOCUMENT_PATH = "/api/v3/lk/documents/create"

DEFAULT_TIMEOUT = 60.0


class ClientConfig(BaseModel):
    """Connection settings for the documents API.

    Instances are frozen; the client swaps in an updated copy whenever a
    setter is called so every request works from one consistent snapshot.
    """

    model_config = ConfigDict(frozen=True)

    base_url: Optional[str] = Field(None, description="True-API base URL, e.g. https://ismp.crpt.ru")
    auth_token: Optional[str] = Field(None, description="Token with or without the Bearer prefix")
    product_group: Optional[str] = Field(None, description="Product group sent as ?pg=...")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")

    def missing_fields(self) -> list[str]:
        """Names of required settings that are unset or blank."""
        return [
            name
            for name in ("base_url", "auth_token", "product_group")
            if not (getattr(self, name) or "").strip()
        ]


class ProductDocument(BaseModel):
    """Business payload of an introduce-goods document.

    Only the common fields are declared; anything else the API schema needs
    can be passed as extra keyword arguments and is serialized as given.
    Field names go over the wire in camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    participant_inn: Optional[str] = None
    production_date: Optional[str] = None
    usage_type: Optional[str] = None


class OutboundEnvelope(BaseModel):
    """Request body of ``POST /api/v3/lk/documents/create``."""

    document_format: Literal["MANUAL"] = DOCUMENT_FORMAT_MANUAL
    product_document: str
    product_group: Optional[str] = None
    signature: str = ""
    type: Literal["LP_INTRODUCE_GOODS"] = DOCUMENT_TYPE_INTRODUCE_GOODS


__all__ = [
    "ClientConfig",
    "ProductDocument",
    "OutboundEnvelope",
    "DOCUMENT_FORMAT_MANUAL",
    "DOCUMENT_TYPE_INTRODUCE_GOODS",
    "CREATE_DOCUMENT_PATH",
    "DEFAULT_TIMEOUT",
]
