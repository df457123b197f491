import unittest

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from hfbmm.errors import (
    AlreadyPositivated,
    DuplicateStoreCode,
    DuplicateVendorName,
    MatrixHasBranches,
    MissingMatrixReference,
    QuantityBelowWinners,
    RegistryError,
    StoreHasPrize,
    StoreNotParticipating,
    TierHasWinners,
)
from hfbmm.models import AwardTier, Base, PositivationDetail, Store, SweepstakeWinnerRecord, Vendor
from hfbmm.workflows import (
    delete_award_tier,
    delete_store,
    delete_vendor,
    record_positivation,
    record_winner,
    register_award_tier,
    register_store,
    register_vendor,
    reset_tier_winners,
    reset_winner,
    set_check_in,
    update_award_tier,
    update_store,
)


class StoreRegistryWorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def test_register_store_persists_and_assigns_id(self):
        with self.Session.begin() as session:
            store = register_store(
                session, Store(code="001", name="Farmácia Central", state=" pr ")
            )
            self.assertTrue(store.id.startswith("store-"))
            self.assertEqual(store.state, "PR")
            self.assertIs(Store.get_by_code(session, "001"), store)

    def test_register_store_rejects_duplicate_code(self):
        with self.Session.begin() as session:
            register_store(session, Store(code="001", name="Primeira"))
            with self.assertRaises(DuplicateStoreCode) as ctx:
                register_store(session, Store(code="001", name="Segunda"))
            self.assertEqual(ctx.exception.code, "001")
            self.assertEqual(len(session.scalars(select(Store)).all()), 1)

    def test_branch_requires_existing_matrix(self):
        with self.Session.begin() as session:
            with self.assertRaises(MissingMatrixReference):
                register_store(session, Store(code="002", name="Filial", is_matrix=False))
            with self.assertRaises(MissingMatrixReference):
                register_store(
                    session,
                    Store(code="003", name="Filial", is_matrix=False, matrix_store_id="store-nope"),
                )

    def test_branch_cannot_point_at_another_branch(self):
        with self.Session.begin() as session:
            matrix = register_store(session, Store(code="001", name="Matriz"))
            branch = register_store(
                session,
                Store(code="002", name="Filial", is_matrix=False, matrix_store_id=matrix.id),
            )
            self.assertIs(branch.matrix_store, matrix)
            self.assertEqual(matrix.branches, [branch])

            with self.assertRaises(MissingMatrixReference):
                register_store(
                    session,
                    Store(code="003", name="Sub-filial", is_matrix=False, matrix_store_id=branch.id),
                )

    def test_matrix_ignores_matrix_reference(self):
        with self.Session.begin() as session:
            other = register_store(session, Store(code="001", name="Outra"))
            store = Store(code="002", name="Matriz", matrix_store_id=other.id)
            register_store(session, store)
            self.assertIsNone(store.matrix_store_id)

    def test_update_store_applies_changes(self):
        with self.Session.begin() as session:
            store = register_store(session, Store(code="001", name="Antigo"))
            update_store(session, store, name="Novo", state="sc", email="loja@example.com")
            self.assertEqual(store.name, "Novo")
            self.assertEqual(store.state, "SC")
            self.assertEqual(store.email, "loja@example.com")

    def test_update_store_restores_values_on_rejection(self):
        with self.Session.begin() as session:
            register_store(session, Store(code="001", name="Primeira"))
            store = register_store(session, Store(code="002", name="Segunda"))
            with self.assertRaises(DuplicateStoreCode):
                update_store(session, store, code="001", name="Renomeada")
            self.assertEqual(store.code, "002")
            self.assertEqual(store.name, "Segunda")

    def test_update_store_rejects_unknown_attribute(self):
        with self.Session.begin() as session:
            store = register_store(session, Store(code="001", name="Loja"))
            with self.assertRaises(AttributeError):
                update_store(session, store, id="store-other")
            with self.assertRaises(AttributeError):
                update_store(session, store, positivations=[])

    def test_matrix_with_branches_cannot_become_branch(self):
        with self.Session.begin() as session:
            matrix = register_store(session, Store(code="001", name="Matriz"))
            other = register_store(session, Store(code="100", name="Outra matriz"))
            register_store(
                session,
                Store(code="002", name="Filial", is_matrix=False, matrix_store_id=matrix.id),
            )
            with self.assertRaises(MatrixHasBranches):
                update_store(session, matrix, is_matrix=False, matrix_store_id=other.id)
            self.assertTrue(matrix.is_matrix)
            self.assertIsNone(matrix.matrix_store_id)

    def test_branch_can_move_to_another_matrix(self):
        with self.Session.begin() as session:
            first = register_store(session, Store(code="001", name="Matriz 1"))
            second = register_store(session, Store(code="100", name="Matriz 2"))
            branch = register_store(
                session,
                Store(code="002", name="Filial", is_matrix=False, matrix_store_id=first.id),
            )
            update_store(session, branch, matrix_store_id=second.id)
            self.assertEqual(branch.matrix_store_id, second.id)

    def test_delete_store_refuses_matrix_with_branches(self):
        with self.Session.begin() as session:
            matrix = register_store(session, Store(code="001", name="Matriz"))
            branch = register_store(
                session,
                Store(code="002", name="Filial", is_matrix=False, matrix_store_id=matrix.id),
            )
            with self.assertRaises(MatrixHasBranches) as ctx:
                delete_store(session, matrix)
            self.assertEqual(ctx.exception.branch_count, 1)

            delete_store(session, branch)
            delete_store(session, matrix)
            self.assertEqual(session.scalars(select(Store)).all(), [])

    def test_delete_store_removes_its_positivations(self):
        with self.Session.begin() as session:
            vendor = Vendor(name="PharmaCorp")
            session.add(vendor)
            store = register_store(session, Store(code="001", name="Loja"))
            record_positivation(session, store, vendor)

            delete_store(session, store)
            self.assertEqual(session.scalars(select(PositivationDetail)).all(), [])

    def test_delete_store_refuses_store_holding_a_prize(self):
        session = self.Session()
        try:
            tier = register_award_tier(
                session,
                AwardTier(name="Ouro", reward_name="TV", quantity_available=1, required_pr=0),
            )
            winner = register_store(session, Store(code="001", name="Vencedora"))
            record = record_winner(session, tier, winner)
            session.commit()

            pending = register_store(session, Store(code="002", name="Nova"))
            with self.assertRaises(StoreHasPrize) as ctx:
                delete_store(session, winner)
            self.assertEqual(ctx.exception.tier_name, "Ouro")
            self.assertTrue(session.is_active)

            # Work done before the refusal still commits.
            session.commit()
            self.assertIs(Store.get_by_code(session, "001"), winner)
            self.assertIs(Store.get_by_code(session, "002"), pending)

            reset_winner(session, record.id)
            delete_store(session, winner)
            session.commit()
            self.assertIsNone(Store.get_by_code(session, "001"))
        finally:
            session.close()

    def test_set_check_in_toggles_attendance(self):
        with self.Session.begin() as session:
            store = register_store(session, Store(code="001", name="Loja"))
            self.assertFalse(store.is_checked_in)
            set_check_in(session, store)
            self.assertTrue(store.is_checked_in)
            set_check_in(session, store, False)
            self.assertFalse(store.is_checked_in)


class PositivationWorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def test_record_positivation_copies_vendor_details(self):
        with self.Session.begin() as session:
            vendor = Vendor(name="HealthPlus", logo_url="https://example.com/hp.png")
            session.add(vendor)
            store = register_store(session, Store(code="001", name="Loja", state="PR"))

            detail = record_positivation(
                session, store, vendor, salesperson_id="sp-1", salesperson_name="Ana"
            )
            self.assertEqual(detail.store_id, store.id)
            self.assertEqual(detail.vendor_id, vendor.id)
            self.assertEqual(detail.vendor_name, "HealthPlus")
            self.assertEqual(detail.vendor_logo_url, "https://example.com/hp.png")
            self.assertEqual(detail.salesperson_name, "Ana")
            self.assertIsNotNone(detail.positivated_at)
            self.assertEqual(store.positivation_count, 1)
            self.assertTrue(store.has_positivation_from(vendor.id))

    def test_vendor_positivates_a_store_once(self):
        with self.Session.begin() as session:
            vendor = Vendor(name="BioMed")
            session.add(vendor)
            store = register_store(session, Store(code="001", name="Loja"))
            record_positivation(session, store, vendor)
            with self.assertRaises(AlreadyPositivated):
                record_positivation(session, store, vendor)
            self.assertEqual(store.positivation_count, 1)

    def test_non_participating_store_is_refused(self):
        with self.Session.begin() as session:
            vendor = Vendor(name="CareFirst")
            session.add(vendor)
            store = register_store(
                session, Store(code="001", name="Convidada", participating=False)
            )
            with self.assertRaises(StoreNotParticipating):
                record_positivation(session, store, vendor)
            self.assertEqual(store.positivation_count, 0)

    def test_register_vendor_rejects_duplicate_name(self):
        with self.Session.begin() as session:
            vendor = register_vendor(session, Vendor(name="PharmaCorp"))
            self.assertIs(Vendor.get_by_name(session, "PharmaCorp"), vendor)
            with self.assertRaises(DuplicateVendorName) as ctx:
                register_vendor(session, Vendor(name="PharmaCorp"))
            self.assertEqual(ctx.exception.name, "PharmaCorp")
            self.assertEqual(len(session.scalars(select(Vendor)).all()), 1)

    def test_delete_vendor_withdraws_its_seals(self):
        with self.Session.begin() as session:
            kept = register_vendor(session, Vendor(name="BioMed"))
            gone = register_vendor(session, Vendor(name="CareFirst"))
            first = register_store(session, Store(code="001", name="Loja 1"))
            second = register_store(session, Store(code="002", name="Loja 2"))
            for store in (first, second):
                record_positivation(session, store, gone)
            record_positivation(session, first, kept)

            self.assertEqual(delete_vendor(session, gone), 2)
            self.assertEqual(first.positivation_count, 1)
            self.assertEqual(second.positivation_count, 0)
            self.assertFalse(first.has_positivation_from(gone.id))
            self.assertIsNone(Vendor.get_by_name(session, "CareFirst"))
            self.assertEqual(len(session.scalars(select(PositivationDetail)).all()), 1)

    def test_registry_errors_are_value_errors(self):
        for exc in (
            DuplicateStoreCode("001"),
            MissingMatrixReference(None),
            MatrixHasBranches("store-x", 2),
            AlreadyPositivated("Vendor", "001"),
            StoreNotParticipating("001"),
            StoreHasPrize("001", "Ouro"),
            DuplicateVendorName("Vendor"),
            TierHasWinners("Ouro", 1),
            QuantityBelowWinners("Ouro", 0, 1),
        ):
            with self.subTest(exc=type(exc).__name__):
                self.assertIsInstance(exc, RegistryError)
                self.assertIsInstance(exc, ValueError)


class AwardTierWorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def test_register_award_tier(self):
        with self.Session.begin() as session:
            tier = register_award_tier(
                session,
                AwardTier(name="Ouro", reward_name="TV", quantity_available=3,
                          required_pr=6, required_sc=5),
            )
            self.assertEqual(AwardTier.ordered(session), [tier])

    def test_negative_values_are_rejected(self):
        cases = {
            "quantity": dict(quantity_available=-1, required_pr=1),
            "pr": dict(quantity_available=1, required_pr=-1),
            "sc": dict(quantity_available=1, required_pr=1, required_sc=-2),
        }
        with self.Session.begin() as session:
            for label, kwargs in cases.items():
                with self.subTest(case=label):
                    with self.assertRaises(ValueError):
                        register_award_tier(
                            session, AwardTier(name=label, reward_name="x", **kwargs)
                        )
            self.assertEqual(AwardTier.ordered(session), [])

    def _tier_with_winners(self, session, winners):
        tier = register_award_tier(
            session,
            AwardTier(name="Ouro", reward_name="TV", quantity_available=3, required_pr=1),
        )
        for n in range(winners):
            store = register_store(session, Store(code=f"{n:03d}", name=f"Loja {n}"))
            record_winner(session, tier, store)
        return tier

    def test_update_award_tier_applies_changes(self):
        with self.Session.begin() as session:
            tier = self._tier_with_winners(session, 1)
            update_award_tier(session, tier, name="Platina", quantity_available=5, required_sc=4)
            self.assertEqual(tier.name, "Platina")
            self.assertEqual(tier.quantity_available, 5)
            self.assertEqual(tier.positivations_required, {"PR": 1, "SC": 4})
            # Records already drawn keep the name they were drawn with.
            self.assertEqual(SweepstakeWinnerRecord.log(session)[0].tier_name, "Ouro")

    def test_update_award_tier_rejects_negative_values(self):
        with self.Session.begin() as session:
            tier = self._tier_with_winners(session, 0)
            for changes in (dict(quantity_available=-1), dict(required_pr=-1), dict(required_sc=-1)):
                with self.subTest(changes=changes):
                    with self.assertRaises(ValueError):
                        update_award_tier(session, tier, name="Outra", **changes)
                    self.assertEqual(tier.name, "Ouro")
                    self.assertEqual(tier.quantity_available, 3)
                    self.assertEqual(tier.positivations_required, {"PR": 1})

    def test_quantity_cannot_drop_below_winners(self):
        with self.Session.begin() as session:
            tier = self._tier_with_winners(session, 2)
            with self.assertRaises(QuantityBelowWinners) as ctx:
                update_award_tier(session, tier, quantity_available=1)
            self.assertEqual(ctx.exception.winner_count, 2)
            self.assertEqual(tier.quantity_available, 3)

            update_award_tier(session, tier, quantity_available=2)
            self.assertEqual(tier.quantity_available, 2)

    def test_update_award_tier_rejects_unknown_attribute(self):
        with self.Session.begin() as session:
            tier = self._tier_with_winners(session, 0)
            with self.assertRaises(AttributeError):
                update_award_tier(session, tier, id="tier-other")
            self.assertNotEqual(tier.id, "tier-other")

    def test_delete_award_tier_refuses_tier_with_winners(self):
        with self.Session.begin() as session:
            tier = self._tier_with_winners(session, 1)
            with self.assertRaises(TierHasWinners) as ctx:
                delete_award_tier(session, tier)
            self.assertEqual(ctx.exception.winner_count, 1)
            self.assertEqual(AwardTier.ordered(session), [tier])

            reset_tier_winners(session, tier)
            delete_award_tier(session, tier)
            self.assertEqual(AwardTier.ordered(session), [])


if __name__ == "__main__":
    unittest.main()
