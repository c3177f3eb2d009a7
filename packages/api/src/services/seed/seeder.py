# This project was developed with assistance from AI tools.
"""Demo data seeding service.

Seeds the registered MSME directory and the sandbox checkout accounts so
sign-in and checkout work immediately after deployment.

Simulated for demonstration purposes -- not real business or payment data.
"""

import json
import logging
from datetime import UTC, datetime

from db import DemoDataManifest, SandboxAccount, User
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..audit import write_audit_event
from ..payments import build_sandbox_accounts
from .fixtures import MSME_DIRECTORY, SANDBOX_ACCOUNTS, compute_config_hash

logger = logging.getLogger(__name__)


async def _check_manifest(session: AsyncSession) -> DemoDataManifest | None:
    """Check if demo data has been seeded."""
    result = await session.execute(
        select(DemoDataManifest).order_by(DemoDataManifest.id.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def _clear_demo_data(session: AsyncSession) -> None:
    """Delete demo users and sandbox accounts by their known keys."""
    udyam_ids = [u["udyam_id"] for u in MSME_DIRECTORY]
    emails = [a["email"] for a in SANDBOX_ACCOUNTS]
    await session.execute(delete(User).where(User.udyam_id.in_(udyam_ids)))
    await session.execute(delete(SandboxAccount).where(SandboxAccount.email.in_(emails)))
    await session.execute(delete(DemoDataManifest))
    await session.flush()


async def seed_demo_data(session: AsyncSession, force: bool = False) -> dict:
    """Seed demo data. Returns summary dict.

    Args:
        session: Database session.
        force: If True, clear and re-seed even if already seeded.

    Returns:
        Summary dict with counts of seeded records, or an
        ``already_seeded`` status when a manifest exists and force=False.
    """
    manifest = await _check_manifest(session)
    if manifest and not force:
        return {
            "status": "already_seeded",
            "seeded_at": manifest.seeded_at.isoformat(),
            "config_hash": manifest.config_hash,
        }

    if force:
        await _clear_demo_data(session)

    # Existing rows (registered by sign-in before seeding) are left alone
    existing_users = set(
        (
            await session.execute(
                select(User.udyam_id).where(
                    User.udyam_id.in_([u["udyam_id"] for u in MSME_DIRECTORY])
                )
            )
        )
        .scalars()
        .all()
    )
    users = [
        User(
            udyam_id=u["udyam_id"],
            phone_number=u["phone_number"],
            name=u["name"],
            role=u["role"],
            is_verified=True,
        )
        for u in MSME_DIRECTORY
        if u["udyam_id"] not in existing_users
    ]
    session.add_all(users)

    existing_accounts = set(
        (
            await session.execute(
                select(SandboxAccount.email).where(
                    SandboxAccount.email.in_([a["email"] for a in SANDBOX_ACCOUNTS])
                )
            )
        )
        .scalars()
        .all()
    )
    accounts = [a for a in build_sandbox_accounts() if a.email not in existing_accounts]
    session.add_all(accounts)

    config_hash = compute_config_hash()
    summary = {"users": len(users), "sandbox_accounts": len(accounts)}
    session.add(DemoDataManifest(config_hash=config_hash, summary=json.dumps(summary)))

    await write_audit_event(
        session,
        event_type="demo_data_seeded",
        user_id="system",
        user_role="system",
        event_data=summary,
    )
    await session.commit()

    logger.info("Demo data seeded: %s", summary)

    return {
        "status": "seeded",
        "seeded_at": datetime.now(UTC).isoformat(),
        "config_hash": config_hash,
        **summary,
    }


async def get_seed_status(session: AsyncSession) -> dict:
    """Check if demo data has been seeded."""
    manifest = await _check_manifest(session)
    if manifest is None:
        return {"seeded": False}
    return {
        "seeded": True,
        "seeded_at": manifest.seeded_at.isoformat(),
        "config_hash": manifest.config_hash,
        "summary": json.loads(manifest.summary) if manifest.summary else None,
    }
