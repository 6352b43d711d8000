from donation_api.models.donation import DONATION_STATUSES, Donation

__all__ = [
    "DONATION_STATUSES",
    "Donation",
]
