import os
import tempfile

# must be set before the application modules read their configuration
os.environ['environment'] = 'test'
os.environ['SQLALCHEMY_DATABASE_URL'] = 'sqlite://'
os.environ.setdefault('JWT_SECRET', 'test-secret')
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='booking-uploads-')
os.environ['EMAIL_HOST'] = ''

import pytest

from middleware.rate_limiter import ALL_LIMITERS


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    for limiter in ALL_LIMITERS:
        limiter.reset()
    yield
