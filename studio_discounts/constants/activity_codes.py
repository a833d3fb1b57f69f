from enum import Enum


class ActivityCode(str, Enum):
    CREATE_DISCOUNT = "CREATE_DISCOUNT"
    UPDATE_DISCOUNT = "UPDATE_DISCOUNT"
    DEACTIVATE_DISCOUNT = "DEACTIVATE_DISCOUNT"
    REACTIVATE_DISCOUNT = "REACTIVATE_DISCOUNT"
    DELETE_DISCOUNT = "DELETE_DISCOUNT"
    DISABLE_USED_DISCOUNT = "DISABLE_USED_DISCOUNT"
    REDEEM_DISCOUNT = "REDEEM_DISCOUNT"
