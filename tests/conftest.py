import pytest
from datetime import date

from invoicing import create_app
from invoicing import database
from invoicing.database import get_session
from invoicing.models import CompanySettings, Customer


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    app.config['TESTING'] = True
    return app


@pytest.fixture(autouse=True)
def tables(app):
    """Fresh schema for every test."""
    database.create_all()
    yield
    database.get_session().remove()
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(tables):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def customer(session):
    """Create a test customer."""
    customer = Customer(name='Muster GmbH', email='buchhaltung@muster.example', address='Hauptstr. 1, Berlin')
    session.add(customer)
    session.commit()
    session.refresh(customer)
    return customer


@pytest.fixture(scope='function')
def company(session):
    """Company settings with discounts and reminders enabled."""
    settings = CompanySettings(
        id=1,
        name='Meisterbetrieb Schmidt',
        address='Werkstattweg 5, Hamburg',
        email='info@schmidt.example',
        discounts_enabled=True,
        default_payment_days=14,
        reminders_enabled=True,
        reminder_days_after_due=7,
        reminder_days_between=10,
    )
    session.add(settings)
    session.commit()
    session.refresh(settings)
    return settings


@pytest.fixture
def two_rate_items():
    """2 x 100 at 19% and 1 x 50 at 7%."""
    return [
        {'description': 'Arbeitszeit', 'quantity': '2', 'unit_price': '100', 'tax_rate': '19'},
        {'description': 'Material', 'quantity': '1', 'unit_price': '50', 'tax_rate': '7'},
    ]


@pytest.fixture
def invoice_payload(customer, two_rate_items):
    return {
        'customer_id': customer.id,
        'issue_date': date(2025, 3, 1).isoformat(),
        'items': two_rate_items,
    }
