# Largest value the Integer money and capacity columns can store.
INT_MAX = 2**31 - 1

# Every model module is imported here so string relationship targets
# ("Member", "Service", ...) resolve no matter which model is imported first.
from subpool.app.models import (  # noqa: E402,F401
    member,
    participant,
    service,
    subscription,
    transaction,
)
