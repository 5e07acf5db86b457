from typing import List, Optional

from sqlalchemy.orm import Session

from db.models import User, InfrastructureManager, Infrastructure


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[User]:
        return self.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def get_by_id(self, _id) -> Optional[User]:
        if _id is None:
            return None
        return self.session.query(User).filter_by(id=_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter_by(email=email).first()

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self.session.query(User).filter_by(verification_token=token).first()

    def get_by_password_reset_token(self, token: str) -> Optional[User]:
        return self.session.query(User).filter_by(password_reset_token=token).first()

    def create(self, **fields) -> User:
        user = User(**fields)
        self.session.add(user)
        self.session.flush()
        return user

    def update(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self.session.flush()
        return user

    def get_managers_for_infrastructure(self, infrastructure_id: int) -> List[User]:
        return self.session.query(User) \
            .join(InfrastructureManager, InfrastructureManager.user_id == User.id) \
            .filter(InfrastructureManager.infrastructure_id == infrastructure_id) \
            .all()

    def is_manager_of(self, user_id: int, infrastructure_id: int) -> bool:
        assignment = self.session.query(InfrastructureManager) \
            .filter_by(user_id=user_id, infrastructure_id=infrastructure_id).first()
        return assignment is not None

    def get_managed_infrastructures(self, user_id: int) -> List[Infrastructure]:
        return self.session.query(Infrastructure) \
            .join(InfrastructureManager, InfrastructureManager.infrastructure_id == Infrastructure.id) \
            .filter(InfrastructureManager.user_id == user_id) \
            .order_by(Infrastructure.name) \
            .all()

    def assign_infrastructure(self, user_id: int, infrastructure_id: int):
        self.session.add(InfrastructureManager(user_id=user_id, infrastructure_id=infrastructure_id))
        self.session.flush()

    def unassign_infrastructure(self, user_id: int, infrastructure_id: int) -> int:
        return self.session.query(InfrastructureManager) \
            .filter_by(user_id=user_id, infrastructure_id=infrastructure_id) \
            .delete(synchronize_session='fetch')

    def remove_all_assignments(self, user_id: int) -> int:
        return self.session.query(InfrastructureManager) \
            .filter_by(user_id=user_id) \
            .delete(synchronize_session='fetch')
