"""Error codes returned by premium use cases"""

UNKNOWN_FEATURE = "UNKNOWN_FEATURE"
INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
UNAUTHORIZED = "UNAUTHORIZED"
NOT_ACTIVE = "NOT_ACTIVE"
ALREADY_ACTIVE = "ALREADY_ACTIVE"

ACTIVATION_FAILED = "ACTIVATION_FAILED"
CANCELLATION_FAILED = "CANCELLATION_FAILED"
STATUS_LOOKUP_FAILED = "STATUS_LOOKUP_FAILED"
