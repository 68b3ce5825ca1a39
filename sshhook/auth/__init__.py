from .keys import keys_match, parse_authorized_key
from .models import AuthDecision
from .validator import CredentialValidator

__all__ = [
    "AuthDecision",
    "CredentialValidator",
    "keys_match",
    "parse_authorized_key",
]
