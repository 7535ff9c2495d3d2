"""Pydantic request/response models for the OSTecnico HTTP API.

Separated from the route modules to keep routing logic distinct from data
contracts.  The request shape mirrors the backend's joined ``service_orders``
projection, including the object-or-single-element-list relations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ChecklistItemModel(BaseModel):
    label: str = ""
    status: str = "na"
    observation: str | None = ""


class AccessoriesModel(BaseModel):
    fonte: bool = False
    cabo: bool = False
    mochila: bool = False
    outro: str | None = ""


class CustomerModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    cpf: str | None = None
    phone: str | None = None


class TechnicianModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None


class ServiceOrderRecordModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    os_number: int | None = None
    created_at: str | None = None
    customers: CustomerModel | list[CustomerModel] | None = None
    technicians: TechnicianModel | list[TechnicianModel] | None = None
    equipment: str | None = None
    serial_number: str | None = None
    problem_description: str | None = ""
    physical_condition: list[ChecklistItemModel] = Field(default_factory=list)
    operating_condition: list[ChecklistItemModel] = Field(default_factory=list)
    technical_tests: list[ChecklistItemModel] = Field(default_factory=list)
    accessories_received: AccessoriesModel | None = None
    technician_observation: str | None = None
    status: str = "pendente"
    client_signed_at: str | None = None
    photos: list[str] = Field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump()


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
