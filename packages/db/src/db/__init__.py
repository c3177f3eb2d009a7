# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    CommitmentStatus,
    Industry,
    LenderExperience,
    LoanPurpose,
    NotificationType,
    PaymentKind,
    PaymentStatus,
    PoolStatus,
    RepaymentStatus,
    RiskAppetite,
    RiskCategory,
    SandboxAccountStatus,
    UserRole,
)
from .models import (
    AuditEvent,
    BorrowerProfile,
    DemoDataManifest,
    LenderProfile,
    Notification,
    Pool,
    PoolCommitment,
    Repayment,
    SandboxAccount,
    Transaction,
    User,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "CommitmentStatus",
    "Industry",
    "LenderExperience",
    "LoanPurpose",
    "NotificationType",
    "PaymentKind",
    "PaymentStatus",
    "PoolStatus",
    "RepaymentStatus",
    "RiskAppetite",
    "RiskCategory",
    "SandboxAccountStatus",
    "UserRole",
    # Models
    "AuditEvent",
    "BorrowerProfile",
    "DemoDataManifest",
    "LenderProfile",
    "Notification",
    "Pool",
    "PoolCommitment",
    "Repayment",
    "SandboxAccount",
    "Transaction",
    "User",
]
