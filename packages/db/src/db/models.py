# This project was developed with assistance from AI tools.
"""
TrustPool -- domain models

Pooled MSME lending models covering users, borrower/lender profiles,
funding pools and lender commitments, repayments, payment transactions,
sandbox checkout accounts, notifications, and the audit trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    CommitmentStatus,
    Industry,
    LoanPurpose,
    NotificationType,
    PaymentKind,
    PaymentStatus,
    PoolStatus,
    RepaymentStatus,
    RiskCategory,
    SandboxAccountStatus,
    UserRole,
)


class User(Base):
    """Platform user keyed by UDYAM registration ID."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    udyam_id = Column(String(64), unique=True, nullable=False, index=True)
    phone_number = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.UNASSIGNED,
    )
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(udyam_id='{self.udyam_id}', role='{self.role}')>"


class BorrowerProfile(Base):
    """Persisted borrower state: business profile, signals, current loan, credit score."""

    __tablename__ = "borrower_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    udyam_id = Column(String(64), unique=True, nullable=False, index=True)
    profile = Column(JSON, nullable=True)
    finance = Column(JSON, nullable=True)
    loan = Column(JSON, nullable=True)
    assessment = Column(JSON, nullable=True)
    credit_score = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<BorrowerProfile(udyam_id='{self.udyam_id}', score={self.credit_score})>"


class LenderProfile(Base):
    """Persisted lender state: investment preferences and wallet."""

    __tablename__ = "lender_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    udyam_id = Column(String(64), unique=True, nullable=False, index=True)
    preferences = Column(JSON, nullable=True)
    wallet_address = Column(String(128), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<LenderProfile(udyam_id='{self.udyam_id}')>"


class Pool(Base):
    """A borrower's funding request with its AI credit assessment."""

    __tablename__ = "pools"
    __table_args__ = (
        # At most one pool per borrower that is not yet repaid or closed
        Index(
            "uq_pools_borrower_live",
            "borrower_id",
            unique=True,
            postgresql_where=text("status NOT IN ('REPAID', 'CLOSED')"),
        ),
    )

    id = Column(String(32), primary_key=True)
    borrower_id = Column(String(64), nullable=False, index=True)
    borrower_name = Column(String(255), nullable=False)
    profile = Column(JSON, nullable=False)
    finance = Column(JSON, nullable=False)

    # Loan request
    industry = Column(Enum(Industry, name="industry", native_enum=False), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    purpose = Column(Enum(LoanPurpose, name="loan_purpose", native_enum=False), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    interest_min = Column(Numeric(5, 2), nullable=True)
    interest_max = Column(Numeric(5, 2), nullable=True)

    # Credit assessment
    score = Column(Integer, nullable=False)
    default_probability = Column(Float, nullable=False)
    risk_category = Column(Enum(RiskCategory, name="risk_category", native_enum=False), nullable=False)
    suggested_interest_rate = Column(Numeric(5, 2), nullable=False)
    eligible_pool_size = Column(Numeric(14, 2), nullable=False)
    reasoning = Column(Text, nullable=True)

    total_funded = Column(Numeric(14, 2), nullable=False, default=0)
    total_repaid = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(
        Enum(PoolStatus, name="pool_status", native_enum=False),
        nullable=False,
        default=PoolStatus.OPEN,
        index=True,
    )
    funded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    commitments = relationship(
        "PoolCommitment",
        back_populates="pool",
        cascade="all, delete-orphan",
        order_by="PoolCommitment.created_at",
    )
    repayments = relationship(
        "Repayment", back_populates="pool", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Pool(id='{self.id}', status='{self.status}', funded={self.total_funded})>"


class PoolCommitment(Base):
    """A single lender's pledge into a pool."""

    __tablename__ = "pool_commitments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pool_id = Column(
        String(32), ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    lender_id = Column(String(64), nullable=False, index=True)
    lender_name = Column(String(255), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    repayment_duration = Column(Integer, nullable=False)
    status = Column(
        Enum(CommitmentStatus, name="commitment_status", native_enum=False),
        nullable=False,
        default=CommitmentStatus.ACCEPTED,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    pool = relationship("Pool", back_populates="commitments")

    def __repr__(self):
        return f"<PoolCommitment(pool='{self.pool_id}', lender='{self.lender_id}', amount={self.amount})>"


class Repayment(Base):
    """Borrower repayment against a pool."""

    __tablename__ = "repayments"

    id = Column(String(32), primary_key=True)
    pool_id = Column(
        String(32), ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    borrower_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(RepaymentStatus, name="repayment_status", native_enum=False),
        nullable=False,
        default=RepaymentStatus.SCHEDULED,
    )
    paid_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    pool = relationship("Pool", back_populates="repayments")

    def __repr__(self):
        return f"<Repayment(id='{self.id}', pool='{self.pool_id}', status='{self.status}')>"


class Transaction(Base):
    """Checkout transaction recorded around a pledge or repayment."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    user_email = Column(String(255), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    loan_id = Column(String(32), nullable=False, index=True)
    kind = Column(Enum(PaymentKind, name="payment_kind", native_enum=False), nullable=False)
    order_id = Column(String(64), nullable=False, default="")
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method = Column(String(32), nullable=False, default="Sandbox")
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Transaction(id={self.id}, status='{self.payment_status}')>"


class SandboxAccount(Base):
    """Simulated checkout account used in place of a hosted payment provider."""

    __tablename__ = "sandbox_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(
        Enum(SandboxAccountStatus, name="sandbox_account_status", native_enum=False),
        nullable=False,
        default=SandboxAccountStatus.ACTIVE,
    )
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SandboxAccount(email='{self.email}', status='{self.status}')>"


class Notification(Base):
    """In-app notification for a user."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False),
        nullable=False,
        default=NotificationType.INFO,
    )
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user='{self.user_id}', read={self.read})>"


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    pool_id = Column(String(32), nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"


class DemoDataManifest(Base):
    """Tracks demo data seeding for idempotency."""

    __tablename__ = "demo_data_manifest"

    id = Column(Integer, primary_key=True, autoincrement=True)
    seeded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    config_hash = Column(String(64), nullable=False)
    summary = Column(Text, nullable=True)

    def __repr__(self):
        return f"<DemoDataManifest(id={self.id}, seeded_at='{self.seeded_at}')>"
