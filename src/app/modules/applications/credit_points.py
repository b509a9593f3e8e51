"""
Credit Points

Auto-calculated credit points derived from previously saved sections. The
applicant cannot set these values directly; only manual activities in the
credit_points section are self-claimed.
"""

from collections.abc import Mapping
from typing import Any

from app.modules.applications.schemas import CreditPointsSummary
from app.modules.applications.section_schemas import JournalType, PatentStatus, PhdStatus
from app.modules.jobs.models import SectionType

CONSULTANCY_MIN_AMOUNT = 500_000


def _items(sections: Mapping[str, Any], section_type: SectionType) -> list[dict]:
    section = sections.get(section_type.value) or {}
    data = section.get("data") or {}
    return data.get("items") or []


def sponsored_project_points(items: list[dict]) -> float:
    """Sole PI: 5, PI with co-investigators: 4, co-PI: 2."""
    total = 0
    for project in items:
        if project.get("is_principal_investigator"):
            total += 5 if project.get("co_investigator_count", 0) == 0 else 4
        else:
            total += 2
    return total


def consultancy_points(items: list[dict]) -> float:
    """3 per project worth at least 5 lakh."""
    return 3 * sum(1 for p in items if (p.get("amount") or 0) >= CONSULTANCY_MIN_AMOUNT)


def phd_supervision_points(items: list[dict]) -> float:
    """Awarded PhDs only. Sole supervisor: 10, first supervisor: 7, co-supervisor: 3."""
    total = 0
    for scholar in items:
        if scholar.get("status") != PhdStatus.AWARDED.value:
            continue
        if scholar.get("is_first_supervisor"):
            total += 10 if scholar.get("co_supervisor_count", 0) == 0 else 7
        else:
            total += 3
    return total


def journal_points(items: list[dict]) -> float:
    """
    Unpaid SCI/Scopus papers only.

    First author: 7 alone, 6 with two authors, 5 with three or more.
    Co-author: 3 with two authors, 2 with three or more.
    """
    total = 0
    for paper in items:
        if paper.get("journal_type") != JournalType.SCI_SCOPUS.value:
            continue
        if paper.get("is_paid_journal"):
            continue

        authors = paper.get("co_author_count", 0) + 1
        if paper.get("is_first_author"):
            total += {1: 7, 2: 6}.get(authors, 5)
        else:
            total += 3 if authors == 2 else 2
    return total


def patent_points(items: list[dict]) -> float:
    """Granted patents only. Sole inventor: 10, principal inventor: 7, co-inventor: 3."""
    total = 0
    for patent in items:
        if patent.get("status") != PatentStatus.GRANTED.value:
            continue
        if patent.get("is_principal_inventor"):
            total += 10 if patent.get("co_inventor_count", 0) == 0 else 7
        else:
            total += 3
    return total


def manual_points(sections: Mapping[str, Any]) -> float:
    section = sections.get(SectionType.CREDIT_POINTS.value) or {}
    activities = (section.get("data") or {}).get("manual_activities") or []
    return sum(activity.get("claimed_points") or 0 for activity in activities)


def calculate_credit_points(sections: Mapping[str, Any]) -> CreditPointsSummary:
    """Summarize credit points for an application's saved sections."""
    sponsored = sponsored_project_points(_items(sections, SectionType.SPONSORED_PROJECTS))
    consultancy = consultancy_points(_items(sections, SectionType.CONSULTANCY_PROJECTS))
    phd = phd_supervision_points(_items(sections, SectionType.PHD_SUPERVISION))
    journals = journal_points(_items(sections, SectionType.PUBLICATIONS_JOURNAL))
    patents = patent_points(_items(sections, SectionType.PATENTS))

    auto_total = sponsored + consultancy + phd + journals + patents
    manual_total = manual_points(sections)

    return CreditPointsSummary(
        sponsored_projects=sponsored,
        consultancy_projects=consultancy,
        phd_supervision=phd,
        publications_journal=journals,
        patents=patents,
        auto_total=auto_total,
        manual_total=manual_total,
        grand_total=auto_total + manual_total,
    )
