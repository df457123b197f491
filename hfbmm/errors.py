"""Exceptions raised by the eligibility, draw and registry operations.

None of them is fatal: each one means "nothing was changed", and the operator
retries after fixing the input (running check-ins, correcting a form).
"""


class BMMError(Exception):
    """Base exception for the business meeting manager."""


class SweepstakeError(BMMError, ValueError):
    """A draw could not be performed or committed."""


class NoEligibleStores(SweepstakeError):
    """The tier's eligible pool is empty."""

    def __init__(self, tier_name: str):
        self.tier_name = tier_name
        super().__init__(f"No eligible store for tier '{tier_name}'")


class NoSlotsRemaining(SweepstakeError):
    """Every prize of the tier has already been drawn."""

    def __init__(self, tier_name: str, remaining_slots: int):
        self.tier_name = tier_name
        self.remaining_slots = remaining_slots
        super().__init__(
            f"No prize remaining for tier '{tier_name}' (remaining slots: {remaining_slots})"
        )


class StoreAlreadyWon(SweepstakeError):
    """The store already holds a prize in this event."""

    def __init__(self, store_id: str, tier_name: str):
        self.store_id = store_id
        self.tier_name = tier_name
        super().__init__(f"Store '{store_id}' already won a prize in tier '{tier_name}'")


class RegistryError(BMMError, ValueError):
    """Store, vendor or positivation data was rejected."""


class DuplicateStoreCode(RegistryError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Store code '{code}' is already registered")


class MissingMatrixReference(RegistryError):
    def __init__(self, matrix_store_id):
        self.matrix_store_id = matrix_store_id
        super().__init__(
            f"Branch must reference an existing matrix store (got {matrix_store_id!r})"
        )


class MatrixHasBranches(RegistryError):
    def __init__(self, store_id: str, branch_count: int):
        self.store_id = store_id
        self.branch_count = branch_count
        super().__init__(
            f"Matrix store '{store_id}' still has {branch_count} branch(es) and cannot be deleted"
        )


class StoreHasPrize(RegistryError):
    """The store holds a winner record; reset it before deleting the store."""

    def __init__(self, store_code: str, tier_name: str):
        self.store_code = store_code
        self.tier_name = tier_name
        super().__init__(
            f"Store '{store_code}' holds a prize in tier '{tier_name}' and cannot be deleted"
        )


class DuplicateVendorName(RegistryError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Vendor '{name}' is already registered")


class TierHasWinners(RegistryError):
    def __init__(self, tier_name: str, winner_count: int):
        self.tier_name = tier_name
        self.winner_count = winner_count
        super().__init__(
            f"Tier '{tier_name}' already has {winner_count} winner(s) and cannot be deleted"
        )


class QuantityBelowWinners(RegistryError):
    """A tier's prize quantity cannot drop below the prizes already drawn."""

    def __init__(self, tier_name: str, quantity: int, winner_count: int):
        self.tier_name = tier_name
        self.quantity = quantity
        self.winner_count = winner_count
        super().__init__(
            f"Tier '{tier_name}' already awarded {winner_count} prize(s); "
            f"quantity {quantity} is too low"
        )


class AlreadyPositivated(RegistryError):
    def __init__(self, vendor_name: str, store_code: str):
        self.vendor_name = vendor_name
        self.store_code = store_code
        super().__init__(f"Vendor '{vendor_name}' already positivated store '{store_code}'")


class StoreNotParticipating(RegistryError):
    def __init__(self, store_code: str):
        self.store_code = store_code
        super().__init__(f"Store '{store_code}' is not participating in the event")


__all__ = [
    "BMMError",
    "SweepstakeError",
    "NoEligibleStores",
    "NoSlotsRemaining",
    "StoreAlreadyWon",
    "RegistryError",
    "DuplicateStoreCode",
    "MissingMatrixReference",
    "MatrixHasBranches",
    "StoreHasPrize",
    "DuplicateVendorName",
    "TierHasWinners",
    "QuantityBelowWinners",
    "AlreadyPositivated",
    "StoreNotParticipating",
]
