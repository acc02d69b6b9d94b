"""Client-side complaint list filtering"""

from typing import Iterable, List

from society_portal.domain.models import Complaint

ALL = "ALL"


def filter_complaints(
    complaints: Iterable[Complaint],
    query: str = "",
    status: str = ALL,
    category: str = ALL,
) -> List[Complaint]:
    """
    Filter complaints the way the list screens do.

    - query: case-insensitive substring of title, description or category
    - status: compared upper-cased; ALL disables the filter
    - category: exact match; ALL disables the filter
    """
    needle = query.strip().lower()
    wanted_status = status.upper()

    def matches(complaint: Complaint) -> bool:
        if needle and not any(
            needle in (text or "").lower()
            for text in (complaint.title, complaint.description, complaint.category)
        ):
            return False
        if wanted_status != ALL and (complaint.status or "").upper() != wanted_status:
            return False
        if category != ALL and complaint.category != category:
            return False
        return True

    return [complaint for complaint in complaints if matches(complaint)]
