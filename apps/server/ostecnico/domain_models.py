"""Domain model objects for service-order reports.

The backend returns service orders as a joined projection where the
``customers``/``technicians`` relations may arrive either as a single object
or as a one-element list.  ``ServiceOrderReport.from_record`` is the single
boundary where that shape is normalized; everything downstream sees typed,
immutable dataclasses.
"""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .report_i18n import tr

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

ORDER_STATUS_LABELS: dict[str, str] = {
    "pendente": "Pendente",
    "em_atendimento": "Em Atendimento",
    "concluido": "Concluído",
}

_FILENAME_UNSAFE_RE = re.compile(r"[\s/\\]")


def unwrap_single(value: Any) -> Any:
    """Return the first element of a list/tuple, or *value* unchanged."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value: object) -> str | None:
    text = _text(value)
    return text or None


def _as_int_or_none(value: object) -> int | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return int(out)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp (``Z`` suffix accepted); None when invalid."""
    if isinstance(value, datetime):
        return value
    text = _text(value)
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def status_label(status: str | None) -> str:
    """Human-readable order status; unknown values are passed through."""
    if status is None:
        return ""
    return ORDER_STATUS_LABELS.get(status, status)


# ---------------------------------------------------------------------------
# 1) Checklists
# ---------------------------------------------------------------------------


class ChecklistStatus(enum.StrEnum):
    OK = "ok"
    DEFECT = "defect"
    NOT_VERIFIED = "na"

    @classmethod
    def coerce(cls, value: object) -> ChecklistStatus:
        """Map a raw status to a member; anything unrecognised is not verified."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NOT_VERIFIED


_STATUS_TOKENS: dict[ChecklistStatus, str] = {
    ChecklistStatus.OK: "OK",
    ChecklistStatus.DEFECT: "Defeito",
    ChecklistStatus.NOT_VERIFIED: "N/V",
}


def checklist_status_token(status: object) -> str:
    return _STATUS_TOKENS[ChecklistStatus.coerce(status)]


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    label: str
    status: ChecklistStatus = ChecklistStatus.NOT_VERIFIED
    observation: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChecklistItem:
        return cls(
            label=_text(data.get("label")),
            status=ChecklistStatus.coerce(data.get("status")),
            observation=_text(data.get("observation")),
        )

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "status": self.status.value, "observation": self.observation}


ChecklistSection = tuple[ChecklistItem, ...]
"""Ordered checklist; input order is the printed order."""


def checklist_from_records(items: object) -> ChecklistSection:
    if not isinstance(items, (list, tuple)):
        return ()
    return tuple(ChecklistItem.from_dict(item) for item in items if isinstance(item, dict))


# ---------------------------------------------------------------------------
# 2) Accessories
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Accessories:
    power_supply: bool = False
    cable: bool = False
    bag: bool = False
    other: str = ""

    @classmethod
    def from_dict(cls, data: object) -> Accessories:
        if not isinstance(data, dict):
            return cls()
        return cls(
            power_supply=bool(data.get("fonte")),
            cable=bool(data.get("cabo")),
            bag=bool(data.get("mochila")),
            other=_text(data.get("outro")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fonte": self.power_supply,
            "cabo": self.cable,
            "mochila": self.bag,
            "outro": self.other,
        }


def accessories_line(accessories: Accessories, lang: str = "pt") -> str:
    parts: list[str] = []
    if accessories.power_supply:
        parts.append(tr(lang, "ACCESSORY_POWER_SUPPLY"))
    if accessories.cable:
        parts.append(tr(lang, "ACCESSORY_CABLE"))
    if accessories.bag:
        parts.append(tr(lang, "ACCESSORY_BAG"))
    if accessories.other:
        parts.append(accessories.other)
    return ", ".join(parts) if parts else tr(lang, "ACCESSORIES_NONE")


# ---------------------------------------------------------------------------
# 3) People
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Customer:
    name: str | None = None
    tax_id: str | None = None
    phone: str | None = None

    @classmethod
    def from_dict(cls, data: object) -> Customer:
        if not isinstance(data, dict):
            return cls()
        return cls(
            name=_optional_text(data.get("name")),
            tax_id=_optional_text(data.get("cpf")),
            phone=_optional_text(data.get("phone")),
        )


@dataclass(frozen=True, slots=True)
class Technician:
    name: str | None = None

    @classmethod
    def from_dict(cls, data: object) -> Technician:
        if not isinstance(data, dict):
            return cls()
        return cls(name=_optional_text(data.get("name")))


# ---------------------------------------------------------------------------
# 4) ServiceOrderReport
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServiceOrderReport:
    order_number: int | None
    created_at: datetime | None
    customer: Customer = field(default_factory=Customer)
    technician: Technician = field(default_factory=Technician)
    equipment: str | None = None
    serial_number: str | None = None
    problem_description: str = ""
    physical_condition: ChecklistSection = ()
    operating_condition: ChecklistSection = ()
    technical_tests: ChecklistSection = ()
    accessories: Accessories = field(default_factory=Accessories)
    technician_observation: str | None = None
    status: str = "pendente"
    client_signed_at: datetime | None = None
    photos: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ServiceOrderReport:
        """Build a report model from a joined ``service_orders`` row."""
        customer = unwrap_single(record.get("customers", record.get("customer")))
        technician = unwrap_single(record.get("technicians", record.get("technician")))
        photos = record.get("photos") or ()
        return cls(
            order_number=_as_int_or_none(record.get("os_number")),
            created_at=parse_timestamp(record.get("created_at")),
            customer=Customer.from_dict(customer),
            technician=Technician.from_dict(technician),
            equipment=_optional_text(record.get("equipment")),
            serial_number=_optional_text(record.get("serial_number")),
            problem_description=_text(record.get("problem_description")),
            physical_condition=checklist_from_records(record.get("physical_condition")),
            operating_condition=checklist_from_records(record.get("operating_condition")),
            technical_tests=checklist_from_records(record.get("technical_tests")),
            accessories=Accessories.from_dict(record.get("accessories_received")),
            technician_observation=_optional_text(record.get("technician_observation")),
            status=_text(record.get("status")),
            client_signed_at=parse_timestamp(record.get("client_signed_at")),
            photos=tuple(str(p) for p in photos if isinstance(p, str) and p.strip()),
        )

    @property
    def checklists(self) -> tuple[tuple[str, ChecklistSection], ...]:
        """The three checklists keyed by their i18n title key, in print order."""
        return (
            ("PHYSICAL_CONDITION", self.physical_condition),
            ("OPERATING_CONDITION", self.operating_condition),
            ("TECHNICAL_TESTS", self.technical_tests),
        )


def report_filename(order: ServiceOrderReport) -> str:
    """``OS_<number>_<customer>.pdf``; whitespace and path separators become ``_``."""
    number = order.order_number if order.order_number else "000"
    customer = _FILENAME_UNSAFE_RE.sub("_", order.customer.name or "cliente")
    return f"OS_{number}_{customer}.pdf"
