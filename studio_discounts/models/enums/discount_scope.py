from enum import Enum

class DiscountScope(str, Enum):
    all = "all"
    classes = "classes"
    workshops = "workshops"
    packages = "packages"
    specific_items = "specific_items"
