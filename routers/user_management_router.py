from typing import Annotated, List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import get_current_admin
from db.database import get_db
from db.models import User
from schemas import base, infrastructure, user
from service.user_management_service import UserManagementService

user_management_router = APIRouter(
    prefix='/user_management',
    tags=['user management']
)


@user_management_router.get('/users', response_model=List[user.UserAdminView], name='All users')
def get_users(current_user: Annotated[User, Depends(get_current_admin)], db: Session = Depends(get_db)):
    user_management_service = UserManagementService(db)
    return user_management_service.get_all()


@user_management_router.put('/users/{user_id}/role',
                            response_model=base.MessageOutputBase,
                            name='Change role',
                            responses={
                                400: {
                                    "content": {
                                        "application/json": {
                                            "example": {"detail": "Invalid role"}
                                        }
                                    }
                                }
                            })
def update_role(current_user: Annotated[User, Depends(get_current_admin)],
                role_request: user.UpdateRoleRequest,
                db: Session = Depends(get_db),
                user_id: int = Path(..., description='`id` of the user')):
    """
    Sets the role to `admin`, `manager`, `faculty` or `student`. A manager losing the role also loses all of
    their infrastructure assignments.
    """
    user_management_service = UserManagementService(db)
    return user_management_service.update_role(user_id, role_request.role)


@user_management_router.put('/users/{user_id}/blacklist', response_model=base.MessageOutputBase,
                            name='Blacklist user')
def update_blacklist(current_user: Annotated[User, Depends(get_current_admin)],
                     blacklist_request: user.UpdateBlacklistRequest,
                     db: Session = Depends(get_db),
                     user_id: int = Path(..., description='`id` of the user')):
    user_management_service = UserManagementService(db)
    return user_management_service.update_blacklist(user_id, blacklist_request.blacklist)


@user_management_router.get('/users/{user_id}/infrastructures',
                            response_model=List[infrastructure.InfrastructureBase],
                            name='Infrastructures of a manager')
def get_user_infrastructures(current_user: Annotated[User, Depends(get_current_admin)],
                             db: Session = Depends(get_db),
                             user_id: int = Path(..., description='`id` of the manager')):
    user_management_service = UserManagementService(db)
    return user_management_service.get_manager_infrastructures(user_id)


@user_management_router.post('/users/{user_id}/infrastructures',
                             status_code=status.HTTP_201_CREATED,
                             response_model=base.MessageOutputBase,
                             name='Assign infrastructure',
                             responses={
                                 404: {
                                     "content": {
                                         "application/json": {
                                             "example": {"detail": "User not found or not an infrastructure manager"}
                                         }
                                     }
                                 },
                                 409: {
                                     "content": {
                                         "application/json": {
                                             "example": {"detail": "Infrastructure already assigned to this manager"}
                                         }
                                     }
                                 }
                             })
def assign_infrastructure(current_user: Annotated[User, Depends(get_current_admin)],
                          assign_request: user.AssignInfrastructureRequest,
                          db: Session = Depends(get_db),
                          user_id: int = Path(..., description='`id` of the manager')):
    user_management_service = UserManagementService(db)
    return user_management_service.assign_infrastructure(user_id, assign_request.infrastructure_id)


@user_management_router.delete('/users/{user_id}/infrastructures/{infrastructure_id}',
                               response_model=base.MessageOutputBase,
                               name='Unassign infrastructure')
def unassign_infrastructure(current_user: Annotated[User, Depends(get_current_admin)],
                            db: Session = Depends(get_db),
                            user_id: int = Path(..., description='`id` of the manager'),
                            infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    user_management_service = UserManagementService(db)
    return user_management_service.unassign_infrastructure(user_id, infrastructure_id)
