# graphql_schema.py
import strawberry
from typing import List, Optional
from fastapi import Depends
from strawberry.fastapi import GraphQLRouter
from sqlalchemy.orm import Session
from database import get_db
from models import Doctor, User


@strawberry.type
class UserType:
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None  # exposed as firstName
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


@strawberry.type
class DoctorType:
    id: int
    user_id: str
    specialty: str
    license_number: str
    years_of_experience: int
    consultation_fee: int
    available_days: List[str]
    start_time: str
    end_time: str
    user: UserType
    bio: Optional[str] = None


# --- Helper Functions ---
def to_user_type(u: User) -> UserType:
    return UserType(
        id=u.id,
        email=u.email,
        first_name=u.first_name,
        last_name=u.last_name,
        profile_image_url=u.profile_image_url,
    )


def to_doctor_type(d: Doctor) -> DoctorType:
    return DoctorType(
        id=d.id,
        user_id=d.user_id,
        specialty=d.specialty,
        license_number=d.license_number,
        years_of_experience=d.years_of_experience,
        bio=d.bio,
        consultation_fee=d.consultation_fee,
        available_days=list(d.available_days or []),
        start_time=d.start_time,
        end_time=d.end_time,
        user=to_user_type(d.user),
    )


@strawberry.type
class Query:
    @strawberry.field
    def doctors(self, info: strawberry.Info, specialty: Optional[str] = None, day: Optional[str] = None) -> List[DoctorType]:
        db: Session = info.context["db"]
        query = db.query(Doctor).join(User, Doctor.user_id == User.id)
        if specialty:
            query = query.filter(Doctor.specialty.ilike(specialty))
        doctors = query.order_by(Doctor.id).all()
        # available_days is a JSON column, so filter by weekday in Python
        if day:
            doctors = [d for d in doctors if day.capitalize() in (d.available_days or [])]
        return [to_doctor_type(d) for d in doctors]

    @strawberry.field
    def doctor(self, info: strawberry.Info, id: int) -> Optional[DoctorType]:
        db: Session = info.context["db"]
        d = db.query(Doctor).filter(Doctor.id == id).first()
        return to_doctor_type(d) if d else None


schema = strawberry.Schema(query=Query)


async def get_context(db: Session = Depends(get_db)):
    return {"db": db}


graphql_app = GraphQLRouter(schema, context_getter=get_context)
