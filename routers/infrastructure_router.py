import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import get_current_admin, get_current_manager, get_current_admin_or_manager
from db.database import get_db
from db.models import User
from schemas import base, booking, infrastructure, question
from service.infrastructure_service import InfrastructureService
from service.question_service import QuestionService

infrastructure_router = APIRouter(
    prefix='/infrastructures',
    tags=['infrastructures']
)

admin_infrastructure_router = APIRouter(
    prefix='/infrastructures/admin',
    tags=['infrastructures']
)

manager_infrastructure_router = APIRouter(
    prefix='/infrastructures/manager',
    tags=['infrastructures']
)

question_router = APIRouter(
    prefix='/infrastructures/manager-admin',
    tags=['questions']
)

FORBIDDEN_RESPONSE = {
    403: {
        "description": "The user is neither an admin nor a manager of this infrastructure",
        "content": {
            "application/json": {
                "example": {"detail": "You do not have permission to manage this infrastructure"}
            }
        }
    }
}


@infrastructure_router.get('/active', response_model=List[infrastructure.InfrastructureBase],
                           name='Active infrastructures')
def get_active_infrastructures(db: Session = Depends(get_db)):
    """
    Infrastructures open for booking, ordered by name. No login required.
    """
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.get_active()


@infrastructure_router.get('/{infrastructure_id}/available-timeslots',
                           response_model=List[booking.BookingBase],
                           name='Available timeslots',
                           responses={
                               404: {
                                   "content": {
                                       "application/json": {
                                           "example": {"detail": "Infrastructure not found"}
                                       }
                                   }
                               }
                           })
def get_available_timeslots(db: Session = Depends(get_db),
                            infrastructure_id: int = Path(..., description='`id` of the infrastructure'),
                            date: Annotated[Optional[datetime.date], Query(
                                description='Only return timeslots on this day')] = None):
    """
    Available timeslots from today on, ordered by date and start time.
    """
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.get_available_timeslots(infrastructure_id, date)


@infrastructure_router.get('/{infrastructure_id}/questions', response_model=List[question.QuestionBase],
                           name='Questions of an active infrastructure')
def get_public_questions(db: Session = Depends(get_db),
                         infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    question_service = QuestionService(db)
    return question_service.get_public_questions(infrastructure_id)


@admin_infrastructure_router.get('/', response_model=List[infrastructure.InfrastructureBase],
                                 name='All infrastructures')
def get_all_infrastructures(current_user: Annotated[User, Depends(get_current_admin)],
                            db: Session = Depends(get_db)):
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.get_all()


@admin_infrastructure_router.post('/',
                                  status_code=status.HTTP_201_CREATED,
                                  response_model=infrastructure.CreateInfrastructureOutput,
                                  name='Create infrastructure',
                                  responses={
                                      400: {
                                          "description": "The name is already taken",
                                          "content": {
                                              "application/json": {
                                                  "example": {
                                                      "detail": "An infrastructure with this name already exists"}
                                              }
                                          }
                                      }
                                  })
def create_infrastructure(current_user: Annotated[User, Depends(get_current_admin)],
                          new_infrastructure: infrastructure.CreateEditInfrastructure,
                          db: Session = Depends(get_db)):
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.create(new_infrastructure)


@admin_infrastructure_router.put('/{infrastructure_id}', response_model=infrastructure.InfrastructureBase,
                                 name='Edit infrastructure')
def update_infrastructure(current_user: Annotated[User, Depends(get_current_admin)],
                          edited_infrastructure: infrastructure.CreateEditInfrastructure,
                          db: Session = Depends(get_db),
                          infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.update(infrastructure_id, edited_infrastructure)


@admin_infrastructure_router.post('/{infrastructure_id}/toggle-status', response_model=base.MessageOutputBase,
                                  name='Activate or deactivate infrastructure')
def toggle_infrastructure_status(current_user: Annotated[User, Depends(get_current_admin)],
                                 db: Session = Depends(get_db),
                                 infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.toggle_status(infrastructure_id)


@manager_infrastructure_router.get('/', response_model=List[infrastructure.InfrastructureBase],
                                   name='My infrastructures')
def get_my_infrastructures(current_user: Annotated[User, Depends(get_current_manager)],
                           db: Session = Depends(get_db)):
    """
    Infrastructures the current manager is assigned to.
    """
    infrastructure_service = InfrastructureService(db)
    return infrastructure_service.get_managed(current_user)


@question_router.get('/{infrastructure_id}/questions', response_model=List[question.QuestionBase],
                     name='Questions', responses=FORBIDDEN_RESPONSE)
def get_questions(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                  db: Session = Depends(get_db),
                  infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    question_service = QuestionService(db)
    return question_service.get_questions(current_user, infrastructure_id)


@question_router.post('/{infrastructure_id}/questions',
                      status_code=status.HTTP_201_CREATED,
                      response_model=question.CreateQuestionOutput,
                      name='Add question',
                      responses=FORBIDDEN_RESPONSE)
def create_question(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                    new_question: question.CreateEditQuestion,
                    db: Session = Depends(get_db),
                    infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    """
    Adds a question users answer when they book this infrastructure. `options` is only kept for dropdowns.
    """
    question_service = QuestionService(db)
    return question_service.create(current_user, infrastructure_id, new_question)


# must be registered before `/{infrastructure_id}/questions/{question_id}`
@question_router.put('/{infrastructure_id}/questions/reorder', response_model=base.MessageOutputBase,
                     name='Reorder questions', responses=FORBIDDEN_RESPONSE)
def reorder_questions(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                      reorder_request: question.ReorderQuestions,
                      db: Session = Depends(get_db),
                      infrastructure_id: int = Path(..., description='`id` of the infrastructure')):
    question_service = QuestionService(db)
    return question_service.reorder(current_user, infrastructure_id, reorder_request)


@question_router.put('/{infrastructure_id}/questions/{question_id}', response_model=base.MessageOutputBase,
                     name='Edit question', responses=FORBIDDEN_RESPONSE)
def update_question(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                    edited_question: question.CreateEditQuestion,
                    db: Session = Depends(get_db),
                    infrastructure_id: int = Path(..., description='`id` of the infrastructure'),
                    question_id: int = Path(..., description='`id` of the question')):
    question_service = QuestionService(db)
    return question_service.update(current_user, infrastructure_id, question_id, edited_question)


@question_router.delete('/{infrastructure_id}/questions/{question_id}', response_model=base.MessageOutputBase,
                        name='Delete question',
                        responses={
                            **FORBIDDEN_RESPONSE,
                            409: {
                                "description": "Bookings already hold answers to this question",
                                "content": {
                                    "application/json": {
                                        "example": {
                                            "detail": "Question has already been answered and cannot be deleted"}
                                    }
                                }
                            }
                        })
def delete_question(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                    db: Session = Depends(get_db),
                    infrastructure_id: int = Path(..., description='`id` of the infrastructure'),
                    question_id: int = Path(..., description='`id` of the question')):
    question_service = QuestionService(db)
    return question_service.delete(current_user, infrastructure_id, question_id)
