from sqlalchemy.orm import sessionmaker
from hfbmm.db.engine import make_engine
from hfbmm.models import Base, AwardTier, Store, Vendor
from hfbmm.workflows import (
    record_positivation,
    register_award_tier,
    register_store,
    register_vendor,
    set_check_in,
)


def main() -> None:
    """Seed the development database with mock event data."""
    engine = make_engine()

    # Drop and recreate all tables. The self-referencing stores table makes
    # SQLite refuse the DROP while foreign keys are on, so switch them off.
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    with Session.begin() as session:
        # Vendors
        vendors = [
            Vendor(name="PharmaCorp", cnpj="11222333000144", city="São Paulo", state="SP",
                   logo_url="https://placehold.co/200x100.png?text=PharmaCorp"),
            Vendor(name="HealthPlus", cnpj="44555666000177", city="Curitiba", state="PR",
                   logo_url="https://placehold.co/200x100.png?text=HealthPlus"),
            Vendor(name="BioMed", cnpj="77888999000100", city="Florianópolis", state="SC",
                   logo_url="https://placehold.co/200x100.png?text=BioMed"),
            Vendor(name="NutriWell", cnpj="12345678000191", city="Porto Alegre", state="RS",
                   logo_url="https://placehold.co/200x100.png?text=NutriWell"),
            Vendor(name="CareFirst", cnpj="98765432000121", city="Rio de Janeiro", state="RJ",
                   logo_url="https://placehold.co/200x100.png?text=CareFirst"),
            Vendor(name="MediSupply", cnpj="54321098000154", city="Belo Horizonte", state="MG",
                   logo_url="https://placehold.co/200x100.png?text=MediSupply"),
        ]
        for vendor in vendors:
            register_vendor(session, vendor)

        # Award tiers
        for tier in (
            AwardTier(name="Bronze", reward_name="Vale-presente R$100", quantity_available=20,
                      required_pr=2, required_sc=2, sort_order=1),
            AwardTier(name="Prata", reward_name="Vale-presente R$250", quantity_available=10,
                      required_pr=4, required_sc=3, sort_order=2),
            AwardTier(name="Ouro", reward_name="Vale-presente R$500 + Destaque", quantity_available=5,
                      required_pr=6, required_sc=5, sort_order=3),
        ):
            register_award_tier(session, tier)

        # Stores: (code, name, state, checked in, participating, seals)
        matrix_pr = register_store(
            session, Store(code="001", name="Hiperfarma Matriz Curitiba", cnpj="01234567000101",
                           state="PR", city="Curitiba")
        )
        matrix_sc = register_store(
            session, Store(code="100", name="Hiperfarma Matriz Joinville", cnpj="01234567000290",
                           state="SC", city="Joinville")
        )
        stores = [
            (matrix_pr, True, 6),
            (matrix_sc, True, 5),
            (register_store(session, Store(code="002", name="Hiperfarma Batel", state="PR", city="Curitiba",
                                           is_matrix=False, matrix_store_id=matrix_pr.id)), True, 4),
            (register_store(session, Store(code="003", name="Hiperfarma Portão", state="PR", city="Curitiba",
                                           is_matrix=False, matrix_store_id=matrix_pr.id)), False, 3),
            (register_store(session, Store(code="101", name="Hiperfarma Blumenau", state="SC", city="Blumenau",
                                           is_matrix=False, matrix_store_id=matrix_sc.id)), True, 3),
            (register_store(session, Store(code="200", name="Drogaria Sem Estado")), True, 6),
            (register_store(session, Store(code="300", name="Farmácia Convidada", state="PR",
                                           participating=False)), False, 0),
        ]

        for store, checked_in, seals in stores:
            set_check_in(session, store, checked_in)
            for vendor in vendors[:seals]:
                record_positivation(session, store, vendor)

    print("Development database seeded.")


if __name__ == "__main__":
    main()
