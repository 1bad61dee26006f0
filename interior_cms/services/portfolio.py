"""
Portfolio entries shown in the public gallery and managed from the CMS.
"""
from typing import List

from interior_cms.services.resource import ResourceApi, Row


class PortfolioApi(ResourceApi):
    table = "portfolios"
    order_by = "created_at"
    order_desc = True

    def get_published(self) -> List[Row]:
        """Published entries only, newest first."""
        return self._select(is_published=True)


portfolio_api = PortfolioApi()
