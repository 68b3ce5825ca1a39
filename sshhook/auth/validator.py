"""Password and public key validation against the directory."""

import hmac

import structlog

from ..directory import Directory
from .keys import keys_match
from .models import AuthDecision

logger = structlog.get_logger()


class CredentialValidator:
    """Decides whether supplied credentials match a directory user.

    Every failure (unknown user, wrong password, unparseable or mismatched
    key) collapses into a rejected decision. The reason is only logged.
    """

    def __init__(self, directory: Directory):
        self.directory = directory

    def validate_password(self, username: str, password: bytes) -> AuthDecision:
        """Check a decoded password for a user.

        Args:
            username: Username supplied by the SSH client
            password: Raw password bytes, already Base64-decoded

        Returns:
            Accepted decision carrying the user's metadata, or a rejection
        """
        user = self.directory.find_user(username)
        if user is None:
            logger.warning("Password auth rejected: user not found", username=username)
            return AuthDecision.reject()

        if not user.password:
            logger.warning(
                "Password auth rejected: no password configured", username=username
            )
            return AuthDecision.reject()

        if not self._passwords_match(user.password, password):
            logger.warning("Password auth rejected: invalid password", username=username)
            return AuthDecision.reject()

        return AuthDecision.accept(user)

    def validate_public_key(self, username: str, public_key: str) -> AuthDecision:
        """Check an authorized-key formatted public key for a user."""
        user = self.directory.find_user(username)
        if user is None:
            logger.warning("Public key auth rejected: user not found", username=username)
            return AuthDecision.reject()

        if not user.public_key:
            logger.warning(
                "Public key auth rejected: no public key configured", username=username
            )
            return AuthDecision.reject()

        if not keys_match(public_key, user.public_key):
            logger.warning("Public key auth rejected: key mismatch", username=username)
            return AuthDecision.reject()

        return AuthDecision.accept(user)

    def _passwords_match(self, stored: str, supplied: bytes) -> bool:
        # Stored passwords are plaintext; swap this method to move to hashes.
        return hmac.compare_digest(stored.encode("utf-8"), supplied)
