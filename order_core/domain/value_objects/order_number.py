"""Order number value object."""
from dataclasses import dataclass

PREFIX = "ORD"


@dataclass(frozen=True)
class OrderNumber:
    """
    Human-readable order identifier.

    Format: ORD<epoch millis><random suffix>
    Examples:
    - ORD17297184000000042
    - ORD17297184001239981

    Not a secret and not guaranteed unique on its own; uniqueness is enforced
    by the repository and collisions are retried by the generator.
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("Order number cannot be empty")

        if not self.value.startswith(PREFIX):
            raise ValueError(
                f"Order number must start with '{PREFIX}': {self.value}"
            )

        body = self.value[len(PREFIX):]
        if not body.isdigit():
            raise ValueError(
                f"Invalid order number format (non-numeric body): {self.value}"
            )

    def __str__(self) -> str:
        return self.value
