"""Construction-time configuration for an EditableGridStore."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..models.constants import IdentityCollisionPolicy
from ..models.errors import ConfigurationError
from ..models.modification import Modification

ChangeCallback = Callable[[Mapping[str, Modification]], None]


@dataclass(frozen=True)
class GridConfig:
    """Engine configuration, validated once.

    Attributes:
        id_field: Row field holding each row's identity.
        on_change: Called with the overlay snapshot after every command
                   that changed the overlay.
        collision_policy: What add_row does with an identity that is
                          already in the base collection or the overlay.
    """

    id_field: str
    on_change: ChangeCallback | None = None
    collision_policy: IdentityCollisionPolicy = IdentityCollisionPolicy.OVERWRITE

    def __post_init__(self) -> None:
        if not isinstance(self.id_field, str) or not self.id_field:
            raise ConfigurationError(
                f"Identity field must be a non-empty string, got {self.id_field!r}"
            )
        if self.on_change is not None and not callable(self.on_change):
            raise ConfigurationError("on_change must be callable")
        try:
            policy = IdentityCollisionPolicy(self.collision_policy)
        except ValueError as e:
            raise ConfigurationError(f"Unknown collision policy: {self.collision_policy!r}") from e
        # Accept the plain string form ("overwrite"/"reject")
        object.__setattr__(self, "collision_policy", policy)
