import enum

class ItemType(str, enum.Enum):
    CLASS = "class"
    WORKSHOP = "workshop"
    PACKAGE = "package"
