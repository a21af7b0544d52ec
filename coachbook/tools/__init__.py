from coachbook.tools.availability import (
    add_blackout,
    get_available_slots,
    list_blackouts,
    remove_blackout,
)
from coachbook.tools.booking import (
    client_confirm,
    coach_accept,
    coach_reject,
    create_booking,
    get_booking,
    update_payment_status,
)

__all__ = [
    "get_available_slots",
    "add_blackout",
    "list_blackouts",
    "remove_blackout",
    "create_booking",
    "coach_accept",
    "coach_reject",
    "client_confirm",
    "get_booking",
    "update_payment_status",
]
