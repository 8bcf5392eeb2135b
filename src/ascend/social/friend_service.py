"""Close friends: a mutual, capacity-limited relationship per unordered user pair.

Each pair has at most one FriendRequest row. Its status moves through an
explicit transition table::

    none -> pending -> accepted -> none      (unfriend)
                    -> declined -> none      (after the resend cooldown)
                    -> none                  (cancel by sender, or expiry)

``none`` means "no row". Expiry and cooldowns are evaluated lazily against
the current time; nothing depends on a background job having run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Literal

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from ascend.config import get_settings
from ascend.db.models import FriendRequest, User
from ascend.errors import Conflict, Forbidden, InvalidInput, NotFound, RateLimited
from ascend.gamification.xp_service import clamped_add

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

FriendStatus = Literal["none", "pending_sent", "pending_received", "accepted"]

# Accepted friendships keep an expiry far enough out to never matter.
ACCEPTED_TTL = timedelta(days=100 * 365)

VALID_TRANSITIONS: dict[str, list[str]] = {
    "none": ["pending"],
    "pending": ["accepted", "declined", "none"],
    "accepted": ["none"],
    "declined": ["none"],
}


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a state transition. Raises ValueError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        msg = f"Invalid transition: {current_status} -> {target_status}. Valid transitions: {valid}"
        raise ValueError(msg)


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def ordered_pair(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


def is_live_pending(request: FriendRequest, now: datetime) -> bool:
    return request.status == "pending" and request.expires_at > now


def effective_status(request: FriendRequest | None, now: datetime) -> str:
    """Stored status with lazy expiry applied: an expired pending request counts as no row."""
    if request is None:
        return "none"
    if request.status == "pending" and not is_live_pending(request, now):
        return "none"
    return request.status


def friend_status_for(request: FriendRequest | None, viewer_id: int, now: datetime) -> FriendStatus:
    """How the pair's relationship looks from ``viewer_id``'s side."""
    status = effective_status(request, now)
    if status == "accepted":
        return "accepted"
    if status == "pending" and request is not None:
        return "pending_sent" if request.sender_id == viewer_id else "pending_received"
    return "none"


def cooldown_days_remaining(resend_after: datetime, now: datetime) -> int:
    """Whole days left before a declined sender may ask again, rounded up."""
    return math.ceil((resend_after - now) / timedelta(days=1))


async def get_pair_request(db: AsyncSession, user_a: int, user_b: int) -> FriendRequest | None:
    """The pair's request row, whichever direction it was sent in."""
    low, high = ordered_pair(user_a, user_b)
    return await db.scalar(
        select(FriendRequest)
        .where(FriendRequest.user_low_id == low, FriendRequest.user_high_id == high)
        .execution_options(populate_existing=True)
    )


async def _bump_close_friend_count(db: AsyncSession, user_id: int, delta: int) -> None:
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(close_friend_count=clamped_add(User.close_friend_count, delta))
        .execution_options(synchronize_session=False)
    )


def _check_capacity(sender: User, receiver: User, limit: int) -> None:
    if sender.close_friend_count >= limit:
        msg = f"You have reached the {limit} close friends limit"
        raise Forbidden(msg)
    if receiver.close_friend_count >= limit:
        msg = "This user has reached their close friends limit"
        raise Forbidden(msg)


# ---------------------------------------------------------------------------
# Send
# ---------------------------------------------------------------------------


async def send_request(
    db: AsyncSession,
    sender_id: int,
    target_id: int,
    now: datetime | None = None,
) -> FriendRequest:
    """Create a pending request from ``sender_id`` to ``target_id``.

    Raises:
        Forbidden: Self-request, target not accepting requests, or either side at capacity.
        NotFound: Target or sender missing.
        Conflict: Already friends, a live request is pending, or a concurrent send won.
        RateLimited: A previous request was declined and the cooldown has not elapsed.
    """
    now = _now(now)
    settings = get_settings()

    if sender_id == target_id:
        msg = "Cannot send request to yourself"
        raise Forbidden(msg)

    receiver = await db.scalar(select(User).where(User.id == target_id))
    if receiver is None:
        msg = "User not found"
        raise NotFound(msg)
    sender = await db.scalar(select(User).where(User.id == sender_id))
    if sender is None:
        msg = "Sender not found"
        raise NotFound(msg)

    if not receiver.allow_close_friend_requests:
        msg = f"{receiver.name} is not accepting close friend requests"
        raise Forbidden(msg)
    _check_capacity(sender, receiver, settings.max_close_friends)

    existing = await get_pair_request(db, sender_id, target_id)
    if existing is not None:
        status = effective_status(existing, now)
        if status == "accepted":
            msg = "Already close friends"
            raise Conflict(msg)
        if status == "pending":
            msg = "A request is already pending"
            raise Conflict(msg)
        if status == "declined" and existing.resend_after is not None and existing.resend_after > now:
            days = cooldown_days_remaining(existing.resend_after, now)
            msg = f"Please wait {days} more day(s) before re-sending"
            raise RateLimited(msg)

        # Declined past its cooldown, or an expired pending request: clear the pair.
        if status != "none":
            validate_transition(status, "none")
        await db.execute(delete(FriendRequest).where(FriendRequest.id == existing.id))
        await db.flush()

    validate_transition("none", "pending")
    low, high = ordered_pair(sender_id, target_id)
    request = FriendRequest(
        sender_id=sender_id,
        receiver_id=target_id,
        user_low_id=low,
        user_high_id=high,
        status="pending",
        expires_at=now + timedelta(days=settings.friend_request_ttl_days),
        created_at=now,
    )
    try:
        async with db.begin_nested():
            db.add(request)
            await db.flush()
    except IntegrityError as e:
        msg = "Friend request changed concurrently, please retry"
        raise Conflict(msg) from e

    logger.info("friend_request_sent", sender_id=sender_id, receiver_id=target_id, request_id=request.id)
    return request


# ---------------------------------------------------------------------------
# Respond
# ---------------------------------------------------------------------------


async def respond_to_request(
    db: AsyncSession,
    user_id: int,
    request_id: int,
    action: str,
    now: datetime | None = None,
) -> str:
    """Accept or decline a request addressed to ``user_id``. Returns the new status.

    Raises:
        InvalidInput: Unknown action.
        NotFound: No such request.
        Forbidden: Caller is not the receiver, or accepting would exceed capacity.
        Conflict: The request is no longer pending (or, for accept, has expired).
    """
    now = _now(now)
    if action not in ("accept", "decline"):
        msg = "requestId and action (accept|decline) required"
        raise InvalidInput(msg)

    request = await db.scalar(
        select(FriendRequest).where(FriendRequest.id == request_id).execution_options(populate_existing=True)
    )
    if request is None:
        msg = "Request not found"
        raise NotFound(msg)
    if request.receiver_id != user_id:
        msg = "Not your request to respond to"
        raise Forbidden(msg)

    target = "accepted" if action == "accept" else "declined"
    current = effective_status(request, now) if action == "accept" else request.status
    try:
        validate_transition(current, target)
    except ValueError as e:
        msg = "Request is no longer pending"
        raise Conflict(msg) from e

    settings = get_settings()
    if action == "accept":
        sender = await db.scalar(select(User).where(User.id == request.sender_id))
        receiver = await db.scalar(select(User).where(User.id == request.receiver_id))
        if sender is None or receiver is None:
            msg = "User not found"
            raise NotFound(msg)
        _check_capacity(receiver, sender, settings.max_close_friends)
        values = {"status": "accepted", "expires_at": now + ACCEPTED_TTL, "updated_at": now}
    else:
        values = {
            "status": "declined",
            "resend_after": now + timedelta(days=settings.decline_cooldown_days),
            "updated_at": now,
        }

    result = await db.execute(
        update(FriendRequest)
        .where(FriendRequest.id == request_id, FriendRequest.status == "pending")
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        msg = "Request is no longer pending"
        raise Conflict(msg)

    if action == "accept":
        await _bump_close_friend_count(db, request.sender_id, 1)
        await _bump_close_friend_count(db, request.receiver_id, 1)

    logger.info("friend_request_answered", request_id=request_id, user_id=user_id, status=target)
    return target


# ---------------------------------------------------------------------------
# Remove (unfriend / cancel)
# ---------------------------------------------------------------------------


async def remove_connection(db: AsyncSession, user_id: int, target_id: int) -> str:
    """Unfriend (either party) or cancel a pending request (sender only).

    Returns ``"unfriended"`` or ``"cancelled"``.

    Raises:
        NotFound: No request row for the pair.
        Forbidden: Any other combination (receiver cancelling, declined rows).
        Conflict: The row changed underneath this request.
    """
    request = await get_pair_request(db, user_id, target_id)
    if request is None:
        msg = "No connection found"
        raise NotFound(msg)

    if request.status == "accepted":
        outcome = "unfriended"
    elif request.status == "pending" and request.sender_id == user_id:
        outcome = "cancelled"
    else:
        msg = "Cannot remove this connection"
        raise Forbidden(msg)
    validate_transition(request.status, "none")

    result = await db.execute(
        delete(FriendRequest).where(FriendRequest.id == request.id, FriendRequest.status == request.status)
    )
    if result.rowcount != 1:
        msg = "Connection changed concurrently, please retry"
        raise Conflict(msg)

    if outcome == "unfriended":
        await _bump_close_friend_count(db, request.sender_id, -1)
        await _bump_close_friend_count(db, request.receiver_id, -1)

    logger.info("friend_connection_removed", user_id=user_id, target_id=target_id, outcome=outcome)
    return outcome


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@dataclass
class IncomingRequest:
    request_id: int
    sender_id: int
    sender_name: str
    sender_level: int
    sender_xp: int
    sent_at: datetime


async def list_incoming_requests(
    db: AsyncSession, user_id: int, now: datetime | None = None
) -> list[IncomingRequest]:
    """Live pending requests addressed to ``user_id``, newest first."""
    now = _now(now)
    result = await db.execute(
        select(FriendRequest, User)
        .join(User, User.id == FriendRequest.sender_id)
        .where(
            FriendRequest.receiver_id == user_id,
            FriendRequest.status == "pending",
            FriendRequest.expires_at > now,
        )
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
    )
    return [
        IncomingRequest(
            request_id=request.id,
            sender_id=sender.id,
            sender_name=sender.name,
            sender_level=sender.level,
            sender_xp=sender.total_xp,
            sent_at=request.created_at,
        )
        for request, sender in result.all()
    ]
