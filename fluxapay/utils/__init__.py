"""FluxaPay utility functions."""

from fluxapay.utils.helpers import format_utc_datetime, utc_now

__all__ = [
    "format_utc_datetime",
    "utc_now",
]
