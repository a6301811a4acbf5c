import os, sys, pytest
# Ensure project root is on path so 'branch_ledger' can be imported without installing
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from branch_ledger import create_app, get_db
from branch_ledger.config.settings import CompanyContext
from branch_ledger.models.base import Base
# Import all model modules to ensure tables are registered before create_all
import branch_ledger.models.organization  # noqa: F401
import branch_ledger.models.financial_transaction  # noqa: F401
import branch_ledger.models.settlement  # noqa: F401
import branch_ledger.models.wallet  # noqa: F401
import branch_ledger.models.audit  # noqa: F401
from branch_ledger.services.registry import build_ledger
from tests.test_utils_seed import ensure_company, DEFAULT_COMPANY_ID


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'DEFAULT_COMPANY_ID': DEFAULT_COMPANY_ID, 'JWT_SECRET_KEY': 'test-secret-key-with-enough-length'})
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
        ensure_company(DEFAULT_COMPANY_ID)
    yield app


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_context):
    return app_context.test_client()


@pytest.fixture()
def session(app_context):
    return get_db()


@pytest.fixture()
def ledger(session):
    """Engines wired around the test session, default company, atomic balance."""
    return build_ledger(session, CompanyContext(DEFAULT_COMPANY_ID))
