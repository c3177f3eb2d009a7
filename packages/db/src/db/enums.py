# This project was developed with assistance from AI tools.
"""
Domain enums for the pooled MSME lending lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    BORROWER = "borrower"
    LENDER = "lender"
    UNASSIGNED = "unassigned"

    @classmethod
    def selectable_roles(cls) -> frozenset["UserRole"]:
        """Roles a user may pick for themselves after sign-in."""
        return frozenset({cls.BORROWER, cls.LENDER})


class Industry(str, enum.Enum):
    MANUFACTURING = "Manufacturing"
    RETAIL = "Retail"
    SERVICES = "Services"


class LoanPurpose(str, enum.Enum):
    WORKING_CAPITAL = "Working Capital"
    INVENTORY = "Inventory"
    EXPANSION = "Expansion"


class RiskCategory(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class PoolStatus(str, enum.Enum):
    OPEN = "OPEN"
    FUNDED = "FUNDED"
    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    CLOSED = "CLOSED"

    @classmethod
    def terminal_statuses(cls) -> frozenset["PoolStatus"]:
        """Statuses where a pool no longer takes pledges or repayments."""
        return frozenset({cls.REPAID, cls.CLOSED})

    @classmethod
    def valid_transitions(cls) -> dict["PoolStatus", frozenset["PoolStatus"]]:
        """Allowed status transitions in the pool lifecycle."""
        return {
            cls.OPEN: frozenset({cls.FUNDED, cls.CLOSED}),
            cls.FUNDED: frozenset({cls.ACTIVE, cls.CLOSED}),
            cls.ACTIVE: frozenset({cls.REPAID}),
            cls.REPAID: frozenset({cls.CLOSED}),
            cls.CLOSED: frozenset(),
        }


class CommitmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REPAYING = "REPAYING"
    COMPLETED = "COMPLETED"


class RepaymentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    PAID = "PAID"
    LATE = "LATE"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentKind(str, enum.Enum):
    INVESTMENT = "INVESTMENT"
    REPAYMENT = "REPAYMENT"


class SandboxAccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class NotificationType(str, enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"


class LenderExperience(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    EXPERT = "Expert"


class RiskAppetite(str, enum.Enum):
    CONSERVATIVE = "Conservative"
    BALANCED = "Balanced"
    AGGRESSIVE = "Aggressive"
