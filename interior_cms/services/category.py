"""
Portfolio categories.

Category names are free text on portfolio rows; deleting a category leaves
portfolios that use its name untouched.
"""
from interior_cms.services.resource import ResourceApi


class CategoryApi(ResourceApi):
    table = "categories"
    order_by = "display_order"


category_api = CategoryApi()
