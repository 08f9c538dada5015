import os
import tempfile
from pathlib import Path

# configure before anything imports app.core.config
_DB_FILE = Path(tempfile.mkdtemp()) / "tours_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["ENV"] = "test"
os.environ["SMTP_HOST"] = ""
os.environ["SECRET_KEY"] = "test-secret"

import pytest  # noqa: E402

from app.api.routes import content  # noqa: E402
from app.db.init_db import create_tables  # noqa: E402
from app.db.session import engine  # noqa: E402
from app.models.base import Base  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    create_tables()
    content._cache_invalidate("gallery", "articles")
    yield

