"""Authentication models and types."""

from dataclasses import dataclass, field

from ..config import UserConfig


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of a credential check.

    ``identity`` and ``metadata`` are only populated when ``accepted`` is true.
    """

    accepted: bool
    identity: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def accept(cls, user: UserConfig) -> "AuthDecision":
        return cls(accepted=True, identity=user.username, metadata=dict(user.metadata))

    @classmethod
    def reject(cls) -> "AuthDecision":
        return cls(accepted=False)
