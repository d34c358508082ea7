"""Rate limiting configuration using slowapi.

The public registration and enquiry forms are unauthenticated, so they carry
tighter per-route limits than the default applied to everything else.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)

# Per-route limit for public forms
PUBLIC_FORM_LIMIT = "10/minute"
