"""
Value Objects for type-safe ID and text handling.

Value objects are immutable, self-validating, and enforce business rules.
They prevent confusion between:
- Application IDs
- Exchange program IDs
- Free-text fields with length limits (reasons, program names)
"""

from dataclasses import dataclass
from typing import Optional

REASON_MAX_LENGTH = 1000
PROGRAM_NAME_MAX_LENGTH = 200


@dataclass(frozen=True)
class ApplicationId:
    """
    Application ID value object.

    Allocated from the "Applications" sequence (MAX(id) + 1), always positive.
    """

    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValueError(f"ApplicationId must be an integer, got {self.value!r}")
        if self.value <= 0:
            raise ValueError(f"ApplicationId must be positive, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"ApplicationId({self.value})"


@dataclass(frozen=True)
class ExchangeProgramId:
    """
    Exchange program ID value object.

    Allocated from the "ExchangePrograms" sequence, always positive.
    """

    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValueError(f"ExchangeProgramId must be an integer, got {self.value!r}")
        if self.value <= 0:
            raise ValueError(f"ExchangeProgramId must be positive, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"ExchangeProgramId({self.value})"


@dataclass(frozen=True)
class Reason:
    """
    Free-text reason attached to an application.

    May be empty on publish; Cancel and Close require a non-blank one
    (enforced by the Application entity, not here).
    """

    value: str = ""

    def __post_init__(self):
        if self.value is None:
            object.__setattr__(self, "value", "")
        if len(self.value) > REASON_MAX_LENGTH:
            raise ValueError(
                f"Reason too long: {len(self.value)} chars. Max {REASON_MAX_LENGTH}."
            )

    @property
    def is_blank(self) -> bool:
        return not self.value.strip()

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProgramName:
    """Exchange program display name"""

    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("ProgramName cannot be empty")
        if len(self.value) > PROGRAM_NAME_MAX_LENGTH:
            raise ValueError(
                f"ProgramName too long: {len(self.value)} chars. Max {PROGRAM_NAME_MAX_LENGTH}."
            )

    def __str__(self) -> str:
        return self.value


# Type conversion helpers for database layer
def optional_reason(value: Optional[str]) -> Reason:
    """Convert optional string to Reason (None becomes empty)"""
    return Reason(value or "")
