"""Read-only view of customer profiles served by the customer directory."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CustomerSegment(str, Enum):
    PERSONAL = "PERSONAL"
    EMPRESARIAL = "EMPRESARIAL"
    VIP = "VIP"  # preferential personal customer
    PYME = "PYME"  # small business customer


class CustomerProfile(BaseModel):
    """Customer as returned by ``GET /customers/{id}``; the segment travels as ``type``."""

    id: str
    segment: CustomerSegment = Field(alias="type")
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dni: Optional[str] = None
    business_name: Optional[str] = None
    ruc: Optional[str] = None
    legal_representative: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
