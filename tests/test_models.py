import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from hfbmm.db.engine import get_sessionmaker, make_engine
from hfbmm.models import (
    AwardTier,
    Base,
    PositivationDetail,
    Store,
    SweepstakeWinnerRecord,
    Vendor,
)
from hfbmm.models.utils import generate_record_id
from hfbmm.workflows import record_positivation, record_winner


class DBTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation, with foreign keys enforced
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self):
        self.engine.dispose()

    def test_store_get_by_code(self):
        with self.Session() as session:
            store = Store(code="001", name="Farmácia Central", state="PR")
            session.add(store)
            session.commit()

            found = Store.get_by_code(session, "001")
            self.assertIsNotNone(found)
            assert found is not None
            self.assertEqual(found.name, "Farmácia Central")
            self.assertIsNone(Store.get_by_code(session, "999"))

    def test_store_code_is_unique(self):
        with self.Session() as session:
            session.add_all([Store(code="001", name="A"), Store(code="001", name="B")])
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_store_state_is_normalized(self):
        store = Store(code="001", name="Loja", state=" sc")
        self.assertEqual(store.state, "SC")
        store.state = "   "
        self.assertIsNone(store.state)

    def test_store_labels(self):
        store = Store(code="001", name="Farmácia Central", cnpj="01234567000101", state="PR")
        self.assertEqual(store.display_label, "001 - Farmácia Central")
        self.assertEqual(
            store.description, "001 - Farmácia Central - CNPJ 01234567000101 - PR"
        )
        stateless = Store(code="002", name="Sem Estado")
        self.assertEqual(stateless.description, "002 - Sem Estado - N/A")

    def test_vendor_get_by_name(self):
        with self.Session() as session:
            session.add(Vendor(name="PharmaCorp", state="SP"))
            session.commit()

            found = Vendor.get_by_name(session, "PharmaCorp")
            assert found is not None
            self.assertEqual(found.state, "SP")
            self.assertIsNone(Vendor.get_by_name(session, "Nobody"))

    def test_positivation_pair_is_unique(self):
        with self.Session() as session:
            vendor = Vendor(name="BioMed")
            store = Store(code="001", name="Loja")
            session.add_all([vendor, store])
            session.flush()

            store.positivations.extend(
                [
                    PositivationDetail(vendor_id=vendor.id, vendor_name="BioMed"),
                    PositivationDetail(vendor_id=vendor.id, vendor_name="BioMed"),
                ]
            )
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_deleting_vendor_withdraws_its_seals(self):
        with self.Session() as session:
            kept = Vendor(name="HealthPlus")
            removed = Vendor(name="NutriWell")
            store = Store(code="001", name="Loja", state="PR")
            session.add_all([kept, removed, store])
            session.flush()
            record_positivation(session, store, kept)
            record_positivation(session, store, removed)
            session.commit()
            self.assertEqual(store.positivation_count, 2)

            session.delete(removed)
            session.commit()
            session.expire(store)

            self.assertEqual(store.positivation_count, 1)
            self.assertEqual(store.positivations[0].vendor_id, kept.id)
            remaining = session.scalars(select(PositivationDetail)).all()
            self.assertEqual(len(remaining), 1)

    def test_award_tier_ordered(self):
        with self.Session() as session:
            session.add_all(
                [
                    AwardTier(name="Ouro", reward_name="TV", quantity_available=1,
                              required_pr=6, sort_order=3),
                    AwardTier(name="Bronze", reward_name="Vale", quantity_available=10,
                              required_pr=2, sort_order=1),
                    AwardTier(name="Prata", reward_name="Fone", quantity_available=5,
                              required_pr=4, sort_order=2),
                ]
            )
            session.commit()
            self.assertEqual(
                [t.name for t in AwardTier.ordered(session)], ["Bronze", "Prata", "Ouro"]
            )

    def test_award_tier_positivations_required(self):
        with_sc = AwardTier(name="A", reward_name="x", quantity_available=1,
                            required_pr=4, required_sc=3)
        without_sc = AwardTier(name="B", reward_name="x", quantity_available=1, required_pr=4)
        self.assertEqual(with_sc.positivations_required, {"PR": 4, "SC": 3})
        self.assertEqual(without_sc.positivations_required, {"PR": 4})

    def test_award_tier_check_constraints(self):
        with self.Session() as session:
            session.add(
                AwardTier(name="Ruim", reward_name="x", quantity_available=-1, required_pr=1)
            )
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_winner_log_order_and_tier_scope(self):
        base = datetime(2024, 11, 15, 14, 0, tzinfo=timezone.utc)
        with self.Session() as session:
            gold = AwardTier(name="Ouro", reward_name="TV", quantity_available=5, required_pr=0)
            silver = AwardTier(name="Prata", reward_name="Fone", quantity_available=5, required_pr=0)
            stores = [Store(code=f"00{n}", name=f"Loja {n}", state="PR") for n in range(3)]
            session.add_all([gold, silver, *stores])
            session.flush()

            record_winner(session, gold, stores[0], drawn_at=base + timedelta(minutes=2))
            record_winner(session, silver, stores[1], drawn_at=base)
            record_winner(session, gold, stores[2], drawn_at=base + timedelta(minutes=1))
            session.commit()

            log = SweepstakeWinnerRecord.log(session)
            self.assertEqual([r.store_id for r in log], [stores[1].id, stores[2].id, stores[0].id])
            gold_log = SweepstakeWinnerRecord.log(session, gold.id)
            self.assertEqual([r.store_id for r in gold_log], [stores[2].id, stores[0].id])
            self.assertEqual(SweepstakeWinnerRecord.count_for_tier(session, gold.id), 2)
            self.assertEqual(SweepstakeWinnerRecord.count_for_tier(session, silver.id), 1)

            found = SweepstakeWinnerRecord.get_by_store(session, stores[1].id)
            assert found is not None
            self.assertEqual(found.tier_name, "Prata")

    def test_store_with_winner_record_cannot_be_deleted(self):
        with self.Session() as session:
            tier = AwardTier(name="Ouro", reward_name="TV", quantity_available=1, required_pr=0)
            store = Store(code="001", name="Loja", state="PR")
            session.add_all([tier, store])
            session.flush()
            record_winner(session, tier, store)
            session.commit()

            session.delete(store)
            with self.assertRaises(IntegrityError):
                session.commit()

    def test_generate_record_id_retries_on_collision(self):
        with self.Session() as session:
            session.add(Store(code="001", name="Loja", id="store-" + "A" * 12))
            session.commit()

            with patch(
                "hfbmm.models.utils.secrets.choice",
                side_effect=["A"] * 12 + ["B"] * 12,
            ):
                new_id = generate_record_id("store", session=session, model=Store)
            self.assertEqual(new_id, "store-" + "B" * 12)

    def test_generate_record_id_gives_up(self):
        with self.Session() as session:
            session.add(Store(code="001", name="Loja", id="store-" + "A" * 12))
            session.commit()

            with patch("hfbmm.models.utils.secrets.choice", return_value="A"):
                with self.assertRaises(RuntimeError):
                    generate_record_id("store", session=session, model=Store, max_attempts=3)


if __name__ == "__main__":
    unittest.main()
