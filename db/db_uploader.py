"""
Seeds the first admin account from `ADMIN_EMAIL` / `ADMIN_PASSWORD` so a fresh database can be administered.
"""

import logging

import config
from db.database import SessionLocal
from db.models import UserRole
from repository.user_repository import UserRepository
from util import hash_password

logger = logging.getLogger(__name__)


def init_data():
    # seeding is skipped when running tests
    if config.ENVIRONMENT == 'test':
        return

    if not config.ADMIN_EMAIL or not config.ADMIN_PASSWORD:
        logger.info('ADMIN_EMAIL or ADMIN_PASSWORD not set, skipping admin seeding')
        return

    session = SessionLocal()
    try:
        repository = UserRepository(session)
        if repository.get_by_email(config.ADMIN_EMAIL):
            return

        repository.create(
            email=config.ADMIN_EMAIL,
            password_hash=hash_password(config.ADMIN_PASSWORD),
            name='Administrator',
            role=UserRole.ADMIN,
            is_verified=True,
        )
        session.commit()
        logger.info('Seeded admin account %s', config.ADMIN_EMAIL)
    finally:
        session.close()
