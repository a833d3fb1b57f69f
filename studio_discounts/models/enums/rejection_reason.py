import enum

class RejectionReason(str, enum.Enum):
    CODE_NOT_FOUND = "CODE_NOT_FOUND"
    CODE_DISABLED = "CODE_DISABLED"
    NOT_YET_ACTIVE = "NOT_YET_ACTIVE"
    EXPIRED = "EXPIRED"
    GLOBAL_LIMIT_REACHED = "GLOBAL_LIMIT_REACHED"
    PER_USER_LIMIT_REACHED = "PER_USER_LIMIT_REACHED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"
