from wpgp.core.clock import SECONDS_PER_DAY, current_day
from wpgp.core.secure_bytes import SecureBytes
from wpgp.core.shared import KeyRef, SharedKey

__all__ = ["SECONDS_PER_DAY", "KeyRef", "SecureBytes", "SharedKey", "current_day"]
