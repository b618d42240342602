import pytest
from decimal import Decimal

from pos_register import create_app
from pos_register.database import get_session
from pos_register.services.catalog_service import PricebookCatalog
from pos_register.services.discount_client import DiscountApiConfig
from pos_register.services.discount_service import DiscountResolver
from pos_register.services.journal_service import JournalReplicator
from pos_register.services.ledger_service import ProductInfo
from pos_register.services.persistence_gateway import TransactionGateway
from pos_register.services.register_service import RegisterEngine


PRODUCTS = [
    ProductInfo(code='SKU1', name='Test Product', unit_price=Decimal('10.00')),
    ProductInfo(code='SKU2', name='Soda 12oz', unit_price=Decimal('2.50')),
    ProductInfo(code='SKU3', name='Extra Large Family Size Potato Chips', unit_price=Decimal('4.99')),
]


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application instance for testing (fresh in-memory DB per test)."""
    app = create_app('config.TestConfig')
    app.config['JOURNAL_FILE'] = str(tmp_path / 'register_journal.txt')
    yield app
    app.extensions['register_engines'].close_all()
    get_session().remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def gateway(session):
    """Gateway with the test pricebook loaded."""
    gateway = TransactionGateway(session)
    gateway.load_pricebook(PRODUCTS)
    return gateway


@pytest.fixture(scope='function')
def catalog():
    return PricebookCatalog(PRODUCTS)


@pytest.fixture(scope='function')
def journal_path(tmp_path):
    return tmp_path / 'journal.txt'


@pytest.fixture(scope='function')
def journal(journal_path):
    """Local-only journal."""
    journal = JournalReplicator(str(journal_path))
    yield journal
    journal.close()


@pytest.fixture(scope='function')
def disabled_resolver():
    return DiscountResolver(DiscountApiConfig(enabled=False))


@pytest.fixture(scope='function')
def engine(gateway, disabled_resolver, journal):
    """Register engine backed by SQLite, with discounts disabled."""
    return RegisterEngine(gateway, disabled_resolver, journal)
