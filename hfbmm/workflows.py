import csv
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TextIO

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from .errors import (
    AlreadyPositivated,
    DuplicateStoreCode,
    DuplicateVendorName,
    MatrixHasBranches,
    MissingMatrixReference,
    NoSlotsRemaining,
    QuantityBelowWinners,
    RegistryError,
    StoreAlreadyWon,
    StoreHasPrize,
    StoreNotParticipating,
    TierHasWinners,
)
from .models import AwardTier, PositivationDetail, Store, SweepstakeWinnerRecord, Vendor
from .models.utils import generate_record_id
from .sweepstakes import SweepstakeDrawEngine, TierEligibility, compute_eligibility

logger = logging.getLogger(__name__)

WINNER_LOG_COLUMNS = ("Faixa", "Premio", "Vencedor", "SorteadoEm")
WINNER_LOG_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"


def _check_store_code(session: Session, store: Store) -> None:
    existing = Store.get_by_code(session, store.code)
    if existing is not None and existing.id != store.id:
        raise DuplicateStoreCode(store.code)


def _check_matrix_reference(session: Session, store: Store) -> None:
    if store.is_matrix:
        # A matrix never points at another matrix.
        store.matrix_store_id = None
        return
    matrix = (
        session.get(Store, store.matrix_store_id)
        if store.matrix_store_id is not None
        else None
    )
    if matrix is None or not matrix.is_matrix or matrix.id == store.id:
        raise MissingMatrixReference(store.matrix_store_id)


def _branch_count(session: Session, store: Store) -> int:
    stmt = select(func.count(Store.id)).where(Store.matrix_store_id == store.id)
    return int(session.scalar(stmt) or 0)


def register_store(session: Session, store: Store) -> Store:
    """Validate and persist a new store.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    store : Store
        Transient store to register.

    Returns
    -------
    Store
        The persisted store.

    Raises
    ------
    DuplicateStoreCode
        If another store already uses ``store.code``.
    MissingMatrixReference
        If ``store`` is a branch whose ``matrix_store_id`` does not resolve to
        a store flagged as matrix.
    """
    _check_store_code(session, store)
    _check_matrix_reference(session, store)

    session.add(store)
    session.flush()
    logger.debug(f"Registered store {store.code} ({store.id})")
    return store


def update_store(session: Session, store: Store, **changes: Any) -> Store:
    """Apply ``changes`` to a persisted store, re-running registration checks.

    Turning a matrix that still has branches into a branch raises
    :class:`MatrixHasBranches`.
    """
    editable = set(Store.__table__.columns.keys()) - {"id", "created_at", "updated_at"}
    unknown = set(changes) - editable
    if unknown:
        raise AttributeError(f"Store has no editable attribute(s): {sorted(unknown)}")

    previous = {key: getattr(store, key) for key in changes}
    for key, value in changes.items():
        setattr(store, key, value)

    # Keep the pending edits out of the validation queries below.
    with session.no_autoflush:
        try:
            _check_store_code(session, store)
            if not store.is_matrix:
                branches = _branch_count(session, store)
                if branches:
                    raise MatrixHasBranches(store.id, branches)
            _check_matrix_reference(session, store)
        except RegistryError:
            for key, value in previous.items():
                setattr(store, key, value)
            raise

    session.flush()
    return store


def delete_store(session: Session, store: Store) -> None:
    """Delete ``store`` and its positivations.

    Raises
    ------
    StoreHasPrize
        If ``store`` holds a winner record; reset the winner first.
    MatrixHasBranches
        If ``store`` is a matrix that still has branches.
    """
    prize = SweepstakeWinnerRecord.get_by_store(session, store.id)
    if prize is not None:
        logger.warning(f"Refused to delete store {store.code}: it won in tier {prize.tier_name}")
        raise StoreHasPrize(store.code, prize.tier_name)
    branches = _branch_count(session, store)
    if branches:
        logger.warning(f"Refused to delete matrix store {store.code}: {branches} branch(es)")
        raise MatrixHasBranches(store.id, branches)
    session.delete(store)
    session.flush()


def set_check_in(session: Session, store: Store, checked_in: bool = True) -> Store:
    """Mark ``store`` as present (or absent) at the event."""
    store.is_checked_in = checked_in
    session.flush()
    logger.debug(f"Store {store.code} check-in set to {checked_in}")
    return store


def record_positivation(
    session: Session,
    store: Store,
    vendor: Vendor,
    *,
    salesperson_id: Optional[str] = None,
    salesperson_name: Optional[str] = None,
) -> PositivationDetail:
    """Record that ``vendor`` positivated ``store``.

    The vendor's name and logo are copied onto the record for display.

    Raises
    ------
    StoreNotParticipating
        If the store does not take part in the event.
    AlreadyPositivated
        If the vendor already positivated this store.
    """
    if not store.participating:
        raise StoreNotParticipating(store.code)
    if store.has_positivation_from(vendor.id):
        logger.warning(f"Vendor {vendor.name} already positivated store {store.code}")
        raise AlreadyPositivated(vendor.name, store.code)

    detail = PositivationDetail(
        id=generate_record_id("pos", session, PositivationDetail),
        vendor_id=vendor.id,
        vendor_name=vendor.name,
        vendor_logo_url=vendor.logo_url,
        salesperson_id=salesperson_id,
        salesperson_name=salesperson_name,
        positivated_at=datetime.now(timezone.utc),
    )
    detail.vendor = vendor
    store.positivations.append(detail)
    session.flush()
    return detail


def register_vendor(session: Session, vendor: Vendor) -> Vendor:
    """Persist a new vendor company.

    Raises
    ------
    DuplicateVendorName
        If another vendor already uses ``vendor.name``.
    """
    existing = Vendor.get_by_name(session, vendor.name)
    if existing is not None and existing.id != vendor.id:
        raise DuplicateVendorName(vendor.name)
    session.add(vendor)
    session.flush()
    logger.debug(f"Registered vendor {vendor.name} ({vendor.id})")
    return vendor


def delete_vendor(session: Session, vendor: Vendor) -> int:
    """Delete ``vendor`` and withdraw every seal it gave.

    Stores that lose a seal are expired, so their positivation count is
    reloaded on next access and they may drop out of a tier's pool.

    Returns
    -------
    int
        Number of positivations withdrawn.
    """
    withdrawn = list(vendor.positivations)
    affected = {detail.store for detail in withdrawn}
    session.delete(vendor)
    session.flush()
    for store in affected:
        session.expire(store, ["positivations"])
    logger.info(f"Deleted vendor {vendor.name}; withdrew {len(withdrawn)} positivation(s)")
    return len(withdrawn)


TIER_EDITABLE = (
    "name",
    "reward_name",
    "quantity_available",
    "required_pr",
    "required_sc",
    "sort_order",
)


def _check_tier_values(tier: AwardTier) -> None:
    if tier.quantity_available < 0:
        raise ValueError("quantity_available must be non-negative")
    for region, threshold in tier.positivations_required.items():
        if threshold < 0:
            raise ValueError(f"threshold for {region} must be non-negative")


def register_award_tier(session: Session, tier: AwardTier) -> AwardTier:
    """Validate and persist an award tier.

    Raises
    ------
    ValueError
        If the prize quantity or a threshold is negative.
    """
    _check_tier_values(tier)
    session.add(tier)
    session.flush()
    return tier


def update_award_tier(session: Session, tier: AwardTier, **changes: Any) -> AwardTier:
    """Apply ``changes`` to a persisted award tier.

    Winner records already drawn keep the tier and prize names they were
    drawn with. A rejected edit leaves ``tier`` unchanged.

    Raises
    ------
    ValueError
        If the prize quantity or a threshold would be negative.
    QuantityBelowWinners
        If ``quantity_available`` would drop below the prizes already drawn.
    """
    unknown = set(changes) - set(TIER_EDITABLE)
    if unknown:
        raise AttributeError(f"AwardTier has no editable attribute(s): {sorted(unknown)}")

    previous = {key: getattr(tier, key) for key in changes}
    for key, value in changes.items():
        setattr(tier, key, value)

    with session.no_autoflush:
        try:
            _check_tier_values(tier)
            awarded = SweepstakeWinnerRecord.count_for_tier(session, tier.id)
            if tier.quantity_available < awarded:
                raise QuantityBelowWinners(tier.name, tier.quantity_available, awarded)
        except ValueError:
            for key, value in previous.items():
                setattr(tier, key, value)
            raise

    session.flush()
    logger.info(f"Updated award tier {tier.name}: {sorted(changes)}")
    return tier


def delete_award_tier(session: Session, tier: AwardTier) -> None:
    """Delete an award tier that has no winners yet.

    Raises
    ------
    TierHasWinners
        If any winner record still points at ``tier``; reset them first.
    """
    awarded = SweepstakeWinnerRecord.count_for_tier(session, tier.id)
    if awarded:
        logger.warning(f"Refused to delete tier {tier.name}: {awarded} winner(s) recorded")
        raise TierHasWinners(tier.name, awarded)
    session.delete(tier)
    session.flush()


def tier_eligibility(session: Session) -> dict[str, TierEligibility]:
    """Compute every tier's draw state from what is currently persisted.

    Tiers come in ``sort_order`` and stores in code order, so pools are
    stable for display. Rows already in the session are refreshed from the
    database, so edits committed elsewhere (a vendor deleted, a seal removed,
    a tier changed) are taken into account.
    """
    tiers = AwardTier.ordered(session, refresh=True)
    stores = session.scalars(
        select(Store)
        .options(selectinload(Store.positivations))
        .order_by(Store.code)
        .execution_options(populate_existing=True)
    ).all()
    winners = SweepstakeWinnerRecord.log(session)
    return compute_eligibility(tiers, list(stores), winners)


def record_winner(
    session: Session,
    tier: AwardTier,
    store: Store,
    *,
    drawn_at: Optional[datetime] = None,
) -> SweepstakeWinnerRecord:
    """Append a winner record binding ``store`` to one of ``tier``'s prizes.

    Raises
    ------
    StoreAlreadyWon
        If ``store`` already holds a prize in any tier.
    NoSlotsRemaining
        If every prize of ``tier`` is already drawn.
    """
    previous = SweepstakeWinnerRecord.get_by_store(session, store.id)
    if previous is not None:
        raise StoreAlreadyWon(store.id, previous.tier_name)

    remaining = tier.quantity_available - SweepstakeWinnerRecord.count_for_tier(session, tier.id)
    if remaining <= 0:
        raise NoSlotsRemaining(tier.name, remaining)

    record = SweepstakeWinnerRecord(
        id=generate_record_id("win", session, SweepstakeWinnerRecord),
        draw_number=SweepstakeWinnerRecord.next_draw_number(session),
        tier_id=tier.id,
        tier_name=tier.name,
        prize_name=tier.reward_name,
        store_id=store.id,
        store_name=store.description,
        drawn_at=drawn_at or datetime.now(timezone.utc),
    )
    session.add(record)
    session.flush()
    logger.info(f"Store {store.code} won '{tier.reward_name}' in tier {tier.name}")
    return record


def run_tier_draw(
    session: Session,
    tier: AwardTier,
    *,
    engine: Optional[SweepstakeDrawEngine] = None,
    confirm: Optional[Callable[[Store], bool]] = None,
    with_preview: bool = False,
    on_frame: Optional[Callable[[str], None]] = None,
    preview_duration: Optional[float] = None,
) -> Optional[SweepstakeWinnerRecord]:
    """Draw one winner for ``tier`` and commit it to the winner log.

    This function essentially wraps :class:`SweepstakeDrawEngine`: it
    recomputes eligibility from the session, draws, and records the winner.

    Parameters
    ----------
    session : Session
        Active session used for queries and persistence.
    tier : AwardTier
        Persisted tier to draw for.
    engine : Optional[SweepstakeDrawEngine], default: None
        Engine to use; a default one is created when omitted.
    confirm : Optional[Callable[[Store], bool]], default: None
        Called with the drawn store before anything is written. Returning
        ``False`` (the operator dismissed the dialog) leaves the winner log
        untouched.
    with_preview : bool, default: False
        Run the cosmetic name cycling before the draw.
    on_frame : Optional[Callable[[str], None]], default: None
        Receives each preview label.
    preview_duration : Optional[float], default: None
        Preview length in seconds; environment default when omitted.

    Returns
    -------
    Optional[SweepstakeWinnerRecord]
        The new record, or ``None`` when the draw was not confirmed.

    Raises
    ------
    NoSlotsRemaining, NoEligibleStores
        When the draw cannot happen; nothing is written.
    """
    engine = engine or SweepstakeDrawEngine()
    eligibility = tier_eligibility(session)
    if tier.id not in eligibility:
        raise ValueError("Award tier must be persisted before running a draw")
    state = eligibility[tier.id]

    if with_preview:
        winner = engine.draw_with_preview(
            tier,
            state.eligible_stores,
            state.remaining_slots,
            on_frame=on_frame,
            duration=preview_duration,
        )
    else:
        winner = engine.draw(tier, state.eligible_stores, state.remaining_slots)

    if confirm is not None and not confirm(winner):
        logger.info(f"Draw for tier {tier.name} dismissed before confirmation")
        return None

    return record_winner(session, tier, winner)


def reset_winner(session: Session, record_id: str) -> int:
    """Delete one winner record; the store becomes eligible again."""
    removed = SweepstakeWinnerRecord.delete_where(
        session, SweepstakeWinnerRecord.id == record_id
    )
    logger.info(f"Reset winner record {record_id} ({removed} removed)")
    return removed


def reset_tier_winners(session: Session, tier: AwardTier) -> int:
    """Delete every winner record of ``tier``."""
    removed = SweepstakeWinnerRecord.delete_where(
        session, SweepstakeWinnerRecord.tier_id == tier.id
    )
    logger.info(f"Reset {removed} winner record(s) of tier {tier.name}")
    return removed


def reset_all_winners(session: Session) -> int:
    """Clear the whole winner log."""
    removed = SweepstakeWinnerRecord.delete_where(session)
    logger.info(f"Reset the winner log ({removed} removed)")
    return removed


def export_winner_log_csv(session: Session, fp: TextIO) -> int:
    """Write the winner log as CSV to ``fp``, newest draw first.

    Returns
    -------
    int
        Number of data rows written.

    Raises
    ------
    ValueError
        If no winner has been drawn yet.
    """
    records = SweepstakeWinnerRecord.log(session)
    if not records:
        raise ValueError("No winners to export")

    writer = csv.writer(fp)
    writer.writerow(WINNER_LOG_COLUMNS)
    for record in reversed(records):
        writer.writerow(
            [
                record.tier_name,
                record.prize_name,
                record.store_name,
                record.drawn_at.strftime(WINNER_LOG_DATE_FORMAT),
            ]
        )
    return len(records)
