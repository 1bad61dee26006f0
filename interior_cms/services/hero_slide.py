"""
Hero slides for the home page carousel.
"""
from typing import List

from interior_cms.services.resource import ResourceApi, Row


class HeroSlideApi(ResourceApi):
    table = "hero_slides"
    order_by = "display_order"

    def get_active(self) -> List[Row]:
        return self._select(is_active=True)


hero_slide_api = HeroSlideApi()
