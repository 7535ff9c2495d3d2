"""Default intake checklists used when a new service order is opened."""

from __future__ import annotations

from collections.abc import Iterable

from .domain_models import ChecklistItem, ChecklistSection, ChecklistStatus

CHECKLIST_COLUMNS: tuple[str, ...] = (
    "physical_condition",
    "operating_condition",
    "technical_tests",
)

PHYSICAL_CONDITION_ITEMS: tuple[str, ...] = (
    "Tampa superior",
    "Moldura da tela",
    "Tela",
    "Teclado",
    "Touchpad",
    "Dobradiças",
    "Carcaça inferior",
    "Parafusos faltando",
    "Portas USB",
    "Porta HDMI / VGA",
    "Porta de áudio (P2)",
)

OPERATING_CONDITION_ITEMS: tuple[str, ...] = (
    "Liga normalmente",
    "Bateria carrega",
    "Bateria segura carga",
    "Bateria estufada",
    "Desempenho lento/travando",
    "Wi-Fi funciona",
    "Bluetooth funciona",
    "Som",
    "Webcam",
)

TECHNICAL_TESTS_ITEMS: tuple[str, ...] = (
    "Fonte funcionando",
    "Tensão correta",
    "RAM",
    "SSD/HD (SMART)",
    "Temperatura normal BIOS",
    "Cooler funcionando",
)


def blank_checklist(labels: Iterable[str]) -> ChecklistSection:
    return tuple(
        ChecklistItem(label=label, status=ChecklistStatus.NOT_VERIFIED, observation="")
        for label in labels
    )


def default_checklists() -> dict[str, ChecklistSection]:
    """Fresh checklists keyed by their ``service_orders`` column name."""
    return {
        "physical_condition": blank_checklist(PHYSICAL_CONDITION_ITEMS),
        "operating_condition": blank_checklist(OPERATING_CONDITION_ITEMS),
        "technical_tests": blank_checklist(TECHNICAL_TESTS_ITEMS),
    }
