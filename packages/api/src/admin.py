# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for registry audit UI

Access the admin panel at: http://localhost:8000/admin

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).

Registry tables (pools, commitments, repayments, transactions, audit) are
read-only here; changes go through the API so they are audited.
"""

from db import (
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
from db.database import engine
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin.

    When AUTH_DISABLED=true, authenticate() always returns True (dev mode).
    Otherwise, requires login with SQLADMIN_USER / SQLADMIN_PASSWORD.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")
        if username == settings.SQLADMIN_USER and password == settings.SQLADMIN_PASSWORD:
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class _ReadOnlyView(ModelView):
    can_create = False
    can_edit = False
    can_delete = False


class UserAdmin(ModelView, model=User):
    column_list = [
        User.id,
        User.udyam_id,
        User.name,
        User.phone_number,
        User.role,
        User.created_at,
    ]
    column_searchable_list = [User.udyam_id, User.name, User.phone_number]
    column_sortable_list = [User.id, User.role, User.created_at]
    column_default_sort = [(User.created_at, True)]
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"


class BorrowerProfileAdmin(_ReadOnlyView, model=BorrowerProfile):
    column_list = [
        BorrowerProfile.id,
        BorrowerProfile.udyam_id,
        BorrowerProfile.credit_score,
        BorrowerProfile.updated_at,
    ]
    column_searchable_list = [BorrowerProfile.udyam_id]
    name = "Borrower Profile"
    name_plural = "Borrower Profiles"
    icon = "fa-solid fa-store"


class LenderProfileAdmin(_ReadOnlyView, model=LenderProfile):
    column_list = [
        LenderProfile.id,
        LenderProfile.udyam_id,
        LenderProfile.wallet_address,
        LenderProfile.updated_at,
    ]
    column_searchable_list = [LenderProfile.udyam_id]
    name = "Lender Profile"
    name_plural = "Lender Profiles"
    icon = "fa-solid fa-hand-holding-usd"


class PoolAdmin(_ReadOnlyView, model=Pool):
    column_list = [
        Pool.id,
        Pool.borrower_name,
        Pool.industry,
        Pool.amount,
        Pool.total_funded,
        Pool.total_repaid,
        Pool.score,
        Pool.risk_category,
        Pool.status,
        Pool.created_at,
    ]
    column_searchable_list = [Pool.id, Pool.borrower_id, Pool.borrower_name]
    column_sortable_list = [Pool.created_at, Pool.amount, Pool.score, Pool.status]
    column_default_sort = [(Pool.created_at, True)]
    name = "Pool"
    name_plural = "Pools"
    icon = "fa-solid fa-layer-group"


class PoolCommitmentAdmin(_ReadOnlyView, model=PoolCommitment):
    column_list = [
        PoolCommitment.id,
        PoolCommitment.pool_id,
        PoolCommitment.lender_id,
        PoolCommitment.amount,
        PoolCommitment.repayment_duration,
        PoolCommitment.status,
        PoolCommitment.created_at,
    ]
    column_searchable_list = [PoolCommitment.pool_id, PoolCommitment.lender_id]
    column_default_sort = [(PoolCommitment.created_at, True)]
    name = "Commitment"
    name_plural = "Commitments"
    icon = "fa-solid fa-handshake"


class RepaymentAdmin(_ReadOnlyView, model=Repayment):
    column_list = [
        Repayment.id,
        Repayment.pool_id,
        Repayment.amount,
        Repayment.due_date,
        Repayment.paid_at,
        Repayment.status,
    ]
    column_searchable_list = [Repayment.pool_id, Repayment.borrower_id]
    column_default_sort = [(Repayment.paid_at, True)]
    name = "Repayment"
    name_plural = "Repayments"
    icon = "fa-solid fa-money-bill-wave"


class TransactionAdmin(_ReadOnlyView, model=Transaction):
    column_list = [
        Transaction.id,
        Transaction.user_id,
        Transaction.kind,
        Transaction.amount,
        Transaction.loan_id,
        Transaction.payment_status,
        Transaction.order_id,
        Transaction.created_at,
    ]
    column_searchable_list = [Transaction.user_id, Transaction.loan_id, Transaction.order_id]
    column_default_sort = [(Transaction.created_at, True)]
    name = "Transaction"
    name_plural = "Transactions"
    icon = "fa-solid fa-receipt"


class SandboxAccountAdmin(ModelView, model=SandboxAccount):
    column_list = [
        SandboxAccount.id,
        SandboxAccount.email,
        SandboxAccount.name,
        SandboxAccount.status,
        SandboxAccount.balance,
    ]
    form_excluded_columns = [SandboxAccount.password_hash]
    column_details_exclude_list = [SandboxAccount.password_hash]
    can_create = False
    name = "Sandbox Account"
    name_plural = "Sandbox Accounts"
    icon = "fa-solid fa-wallet"


class NotificationAdmin(_ReadOnlyView, model=Notification):
    column_list = [
        Notification.id,
        Notification.user_id,
        Notification.title,
        Notification.type,
        Notification.read,
        Notification.created_at,
    ]
    column_default_sort = [(Notification.created_at, True)]
    name = "Notification"
    name_plural = "Notifications"
    icon = "fa-solid fa-bell"


class AuditEventAdmin(_ReadOnlyView, model=AuditEvent):
    column_list = [
        AuditEvent.id,
        AuditEvent.timestamp,
        AuditEvent.event_type,
        AuditEvent.user_id,
        AuditEvent.user_role,
        AuditEvent.pool_id,
    ]
    column_sortable_list = [AuditEvent.id, AuditEvent.timestamp, AuditEvent.event_type]
    column_default_sort = [(AuditEvent.timestamp, True)]
    name = "Audit Event"
    name_plural = "Audit Events"
    icon = "fa-solid fa-shield-alt"


class DemoDataManifestAdmin(_ReadOnlyView, model=DemoDataManifest):
    column_list = [DemoDataManifest.id, DemoDataManifest.seeded_at, DemoDataManifest.config_hash]
    name = "Seed Manifest"
    name_plural = "Seed Manifests"
    icon = "fa-solid fa-database"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(
        secret_key=settings.SQLADMIN_SECRET_KEY,
    )
    admin = Admin(app, engine, title="TrustPool Admin", authentication_backend=auth_backend)

    for view in (
        UserAdmin,
        BorrowerProfileAdmin,
        LenderProfileAdmin,
        PoolAdmin,
        PoolCommitmentAdmin,
        RepaymentAdmin,
        TransactionAdmin,
        SandboxAccountAdmin,
        NotificationAdmin,
        AuditEventAdmin,
        DemoDataManifestAdmin,
    ):
        admin.add_view(view)

    return admin
