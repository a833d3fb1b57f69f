from enum import Enum

class DiscountKind(str, Enum):
    percentage = "percentage"
    fixed_amount = "fixed_amount"
