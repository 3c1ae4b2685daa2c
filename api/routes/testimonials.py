"""
Endpoints de testimonios.

- GET /api/v1/testimonials: Listar (más recientes primero)
- GET /api/v1/testimonials/{testimonial_id}: Detalle
- POST / PUT / DELETE: requieren sesión; cada mutación queda auditada
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from escalando_core.audit import serialize_record
from escalando_core.db import helpers
from escalando_core.security import AuthUser

from ..dependencies import get_current_user, get_db
from ..models.requests import TestimonialCreateRequest, TestimonialUpdateRequest

router = APIRouter(prefix="/api/v1/testimonials", tags=["testimonials"])


@router.get("")
def list_testimonials(session: Session = Depends(get_db)):
    return [serialize_record(t) for t in helpers.list_testimonials(session)]


@router.get("/{testimonial_id}")
def get_testimonial(testimonial_id: int, session: Session = Depends(get_db)):
    return serialize_record(helpers.get_testimonial(session, testimonial_id))


@router.post("", status_code=201)
def create_testimonial(
    request: TestimonialCreateRequest,
    user: AuthUser = Depends(get_current_user),
    session: Session = Depends(get_db),
):
    testimonial = helpers.create_testimonial(session, request.model_dump(), user_id=user.id)
    return serialize_record(testimonial)


@router.put("/{testimonial_id}")
def update_testimonial(
    testimonial_id: int,
    request: TestimonialUpdateRequest,
    user: AuthUser = Depends(get_current_user),
    session: Session = Depends(get_db),
):
    testimonial = helpers.update_testimonial(
        session,
        testimonial_id,
        request.model_dump(exclude_unset=True),
        user_id=user.id,
    )
    return serialize_record(testimonial)


@router.delete("/{testimonial_id}", status_code=204)
def delete_testimonial(
    testimonial_id: int,
    user: AuthUser = Depends(get_current_user),
    session: Session = Depends(get_db),
):
    helpers.delete_testimonial(session, testimonial_id, user_id=user.id)
    return Response(status_code=204)
