from typing import List, Optional

from sqlalchemy.orm import Session

from db.models import Infrastructure
from schemas.infrastructure import CreateEditInfrastructure


class InfrastructureRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[Infrastructure]:
        return self.session.query(Infrastructure).order_by(Infrastructure.name).all()

    def get_active(self) -> List[Infrastructure]:
        return self.session.query(Infrastructure) \
            .filter(Infrastructure.is_active.is_(True)) \
            .order_by(Infrastructure.name) \
            .all()

    def get_by_id(self, _id: int) -> Optional[Infrastructure]:
        return self.session.query(Infrastructure).filter_by(id=_id).first()

    def exist_by_name(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.session.query(Infrastructure.id).filter(Infrastructure.name == name)
        if exclude_id is not None:
            query = query.filter(Infrastructure.id != exclude_id)
        return query.first() is not None

    def create(self, data: CreateEditInfrastructure) -> Infrastructure:
        infrastructure = Infrastructure(**data.model_dump())
        self.session.add(infrastructure)
        self.session.commit()
        self.session.refresh(infrastructure)

        return infrastructure

    def update(self, infrastructure: Infrastructure, data: CreateEditInfrastructure) -> Infrastructure:
        for key, value in data.model_dump().items():
            setattr(infrastructure, key, value)

        self.session.commit()
        self.session.refresh(infrastructure)

        return infrastructure

    def toggle_active(self, infrastructure: Infrastructure) -> Infrastructure:
        infrastructure.is_active = not infrastructure.is_active
        self.session.commit()
        self.session.refresh(infrastructure)

        return infrastructure
