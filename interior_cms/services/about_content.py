"""
Content blocks for the about page, grouped by section tag.
"""
from collections import OrderedDict
from typing import Dict, List

from interior_cms.services.resource import ResourceApi, Row, utc_now_iso


class AboutContentApi(ResourceApi):
    table = "about_content"
    order_by = "display_order"

    def get_by_section(self, section: str) -> List[Row]:
        return self._select(section=section)

    def update(self, row_id: str, changes: Row) -> Row:
        return self._update(row_id, {**changes, "updated_at": utc_now_iso()})


def group_by_section(rows: List[Row]) -> Dict[str, List[Row]]:
    """Group already-ordered rows by section, keeping first-seen section order."""
    sections: Dict[str, List[Row]] = OrderedDict()
    for row in rows:
        sections.setdefault(row["section"], []).append(row)
    return sections


about_content_api = AboutContentApi()
