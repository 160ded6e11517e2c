"""User management API routes."""
from math import ceil

from fastapi import APIRouter, Query, status
from sqlalchemy import func, select

from vig.api.deps import AdminUser, CurrentUser, DbSession
from vig.errors import Forbidden, NotFound
from vig.models.credit_transaction import CreditReason
from vig.models.user import User
from vig.schemas.common import Pagination
from vig.schemas.user import (
    CreditsResponse,
    CreditTransactionResponse,
    TransactionListResponse,
    UserAdminUpdate,
    UserResponse,
)
from vig.services.artifact_service import ArtifactService
from vig.services.auth_service import AuthService
from vig.services.credit_service import CreditService

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    """Get current user profile."""
    return current_user


@router.get("/me/credits", response_model=CreditsResponse)
async def get_credits(current_user: CurrentUser):
    """Get current user credit balance."""
    return CreditsResponse(
        points=current_user.points,
        has_received_free_credits=current_user.has_received_free_credits,
    )


@router.get("/me/transactions", response_model=TransactionListResponse)
async def get_transactions(
    current_user: CurrentUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List the current user's credit ledger, newest first."""
    items, total = await CreditService(db).list_transactions(current_user.id, page, limit)
    return TransactionListResponse(
        transactions=[CreditTransactionResponse.model_validate(item) for item in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=ceil(total / limit) if total else 0),
    )


@router.get("", response_model=list[UserResponse])
async def list_users(
    admin: AdminUser,
    db: DbSession,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """List all users (admin only)."""
    result = await db.execute(
        select(User).order_by(User.id).offset(skip).limit(limit)
    )
    return result.scalars().all()


async def _get_user_or_404(db: DbSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, current_user: CurrentUser, db: DbSession):
    """Get a user by id (self or admin)."""
    if user_id != current_user.id and not current_user.is_admin:
        raise Forbidden("Not authorized to view this user")
    return await _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    update_data: UserAdminUpdate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Update a user (self or admin; role, points and status are admin only)."""
    if user_id != current_user.id and not current_user.is_admin:
        raise Forbidden("Not authorized to update this user")

    admin_fields = {"role", "points", "is_active"} & update_data.model_fields_set
    if admin_fields and not current_user.is_admin:
        raise Forbidden("Only admins can change role, points or status")

    user = await _get_user_or_404(db, user_id)
    user = await AuthService(db).update_profile(user, update_data)

    if update_data.role is not None:
        user.role = update_data.role
    if update_data.is_active is not None:
        user.is_active = update_data.is_active
    if update_data.points is not None and update_data.points != user.points:
        delta = update_data.points - user.points
        await CreditService(db).credit(user.id, delta, CreditReason.ADMIN_ADJUSTMENT, reference=f"admin:{current_user.id}")

    await db.flush()
    await db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, admin: AdminUser, db: DbSession):
    """Delete a user (admin only)."""
    user = await _get_user_or_404(db, user_id)
    await ArtifactService(db).discard_for_user(user.id)
    await db.delete(user)
    await db.flush()
