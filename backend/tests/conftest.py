import os, sys, pytest
# Ensure backend directory is on path so 'servicedesk' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from servicedesk import create_app, get_db
from servicedesk.models.tenant import Base
# Import all model modules to ensure tables are registered before create_all
import servicedesk.models.ticket  # noqa: F401
import servicedesk.models.history  # noqa: F401
import servicedesk.models.media  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
        'MAIL_BACKEND': 'memory',
        'NOTIFY_TIMEOUT_SECONDS': 2,
        'PUBLIC_BASE_URL': 'https://desk.example.com',
    })
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def outbox(app_instance):
    """The memory dispatcher's outbox, emptied before and after each test."""
    dispatcher = app_instance.extensions['notification_dispatcher']
    dispatcher.clear()
    yield dispatcher
    dispatcher.clear()
