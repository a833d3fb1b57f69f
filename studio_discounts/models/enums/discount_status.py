from enum import Enum

# Derived on read, never stored.
class DiscountStatus(str, Enum):
    active = "active"
    not_yet_started = "not_yet_started"
    expired = "expired"
    used_up = "used_up"
    disabled = "disabled"
