import pytest

from marketplace.infrastructure.bootstrap import engine_for
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork
from marketplace.infrastructure.persistence.tables import init_db
from tests.fakes import make_merchant, make_product


@pytest.fixture
def engine(tmp_path):
    # A short busy timeout so a blocked writer fails fast instead of waiting.
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'marketplace.db'}")
    engine = engine_for(settings, connect_args={"timeout": 0.2})
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def uow_factory(engine):
    """SQL unit of work over a seeded catalog: two merchants, three products."""
    with SqlUnitOfWork(engine) as uow:
        uow.merchants.save(make_merchant(1, commission="5"))
        uow.merchants.save(make_merchant(2, commission="2"))
        uow.products.save(make_product(1, merchant_id=1, price="100", stock=10))
        uow.products.save(make_product(2, merchant_id=1, price="100", stock=10, sale_price="90"))
        uow.products.save(make_product(3, merchant_id=2, price="50", stock=3))
        uow.commit()
    return lambda: SqlUnitOfWork(engine)
