# crud.py
"""Data access for doctors, patients, appointments, messages and medical records.

Every function takes the request's SQLAlchemy session first. Point lookups
return ``None`` on a miss; inserts return the refreshed row. Any database
failure rolls the session back and surfaces as ``StorageError``.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from errors import StorageError
from models import Appointment, Doctor, MedicalRecord, Message, Patient, User
from schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentView,
    DoctorCreate,
    DoctorWithUser,
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordWithDoctor,
    MessageCreate,
    PatientCreate,
    PatientWithUser,
    UserResponse,
)

logger = logging.getLogger(__name__)


def _commit(db: Session, obj=None):
    try:
        if obj is not None:
            db.add(obj)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(str(getattr(e, "orig", None) or e)) from e
    if obj is not None:
        db.refresh(obj)
    return obj


# === Users ===

def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def upsert_user(db: Session, identity: UserResponse) -> User:
    """Insert or refresh the caller's user row in one statement.

    Concurrent first requests from a new user all land on the same row
    instead of racing on the primary key.
    """
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise StorageError(f"user upsert is not supported on {dialect}")

    now = datetime.utcnow()
    profile = identity.model_dump(exclude={"id"})
    stmt = insert(User).values(id=identity.id, created_at=now, updated_at=now, **profile)
    stmt = stmt.on_conflict_do_update(index_elements=[User.id], set_={**profile, "updated_at": now})
    try:
        db.execute(stmt)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(str(getattr(e, "orig", None) or e)) from e
    _commit(db)
    return db.query(User).populate_existing().filter(User.id == identity.id).one()


# === Doctors ===

def create_doctor(db: Session, data: DoctorCreate) -> Doctor:
    doctor = _commit(db, Doctor(**data.model_dump()))
    logger.info("Created doctor %s for user %s", doctor.id, doctor.user_id)
    return doctor


def get_doctor(db: Session, doctor_id: int) -> Optional[Doctor]:
    return db.query(Doctor).filter(Doctor.id == doctor_id).first()


def get_doctor_by_user_id(db: Session, user_id: str) -> Optional[Doctor]:
    return db.query(Doctor).filter(Doctor.user_id == user_id).first()


def get_doctors(db: Session) -> List[DoctorWithUser]:
    doctors = db.query(Doctor).join(User, Doctor.user_id == User.id).order_by(Doctor.id).all()
    return [DoctorWithUser.model_validate(d) for d in doctors]


# === Patients ===

def create_patient(db: Session, data: PatientCreate) -> Patient:
    patient = _commit(db, Patient(**data.model_dump()))
    logger.info("Created patient %s for user %s", patient.id, patient.user_id)
    return patient


def get_patient(db: Session, patient_id: int) -> Optional[Patient]:
    return db.query(Patient).filter(Patient.id == patient_id).first()


def get_patient_by_user_id(db: Session, user_id: str) -> Optional[Patient]:
    return db.query(Patient).filter(Patient.user_id == user_id).first()


# === Appointments ===

def create_appointment(db: Session, data: AppointmentCreate) -> Appointment:
    appointment = _commit(db, Appointment(**data.model_dump(), status="pending"))
    logger.info(
        "Booked appointment %s: patient %s with doctor %s on %s %s",
        appointment.id, appointment.patient_id, appointment.doctor_id, appointment.date, appointment.time,
    )
    return appointment


def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
    return db.query(Appointment).filter(Appointment.id == appointment_id).first()


def _appointment_fields(appointment: Appointment) -> dict:
    return AppointmentResponse.model_validate(appointment).model_dump()


def get_appointments_for_patient(db: Session, patient_id: int) -> List[AppointmentView]:
    rows = (
        db.query(Appointment, Doctor)
        .join(Doctor, Appointment.doctor_id == Doctor.id)
        .join(User, Doctor.user_id == User.id)
        .filter(Appointment.patient_id == patient_id)
        .order_by(Appointment.date, Appointment.time, Appointment.id)
        .all()
    )
    return [
        AppointmentView(**_appointment_fields(a), doctor=DoctorWithUser.model_validate(d))
        for a, d in rows
    ]


def get_appointments_for_doctor(db: Session, doctor_id: int) -> List[AppointmentView]:
    rows = (
        db.query(Appointment, Patient)
        .join(Patient, Appointment.patient_id == Patient.id)
        .join(User, Patient.user_id == User.id)
        .filter(Appointment.doctor_id == doctor_id)
        .order_by(Appointment.date, Appointment.time, Appointment.id)
        .all()
    )
    return [
        AppointmentView(**_appointment_fields(a), patient=PatientWithUser.model_validate(p))
        for a, p in rows
    ]


def update_appointment_status(
    db: Session, appointment_id: int, status: str, notes: Optional[str] = None
) -> Optional[Appointment]:
    """Overwrite status and notes; last write wins."""
    appointment = get_appointment(db, appointment_id)
    if appointment is None:
        return None
    previous = appointment.status
    appointment.status = status
    appointment.notes = notes
    _commit(db, appointment)
    logger.info("Appointment %s status %s -> %s", appointment_id, previous, status)
    return appointment


# === Messages ===

def create_message(db: Session, data: MessageCreate) -> Message:
    return _commit(db, Message(**data.model_dump()))


def get_messages_between_users(db: Session, user_a: str, user_b: str) -> List[Message]:
    return (
        db.query(Message)
        .filter(
            or_(
                and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                and_(Message.sender_id == user_b, Message.receiver_id == user_a),
            )
        )
        .order_by(Message.created_at, Message.id)
        .all()
    )


def mark_messages_read(db: Session, receiver_id: str, sender_id: str) -> int:
    updated = (
        db.query(Message)
        .filter(
            Message.receiver_id == receiver_id,
            Message.sender_id == sender_id,
            Message.is_read.is_(False),
        )
        .update({Message.is_read: True}, synchronize_session=False)
    )
    _commit(db)
    return updated


# === Medical records ===

def create_medical_record(db: Session, data: MedicalRecordCreate) -> MedicalRecord:
    now = datetime.utcnow()
    record = _commit(db, MedicalRecord(**data.model_dump(), visit_date=now, created_at=now))
    logger.info("Doctor %s added medical record %s for patient %s", record.doctor_id, record.id, record.patient_id)
    return record


def get_medical_records_for_patient(db: Session, patient_id: int) -> List[MedicalRecordWithDoctor]:
    rows = (
        db.query(MedicalRecord, Doctor)
        .join(Doctor, MedicalRecord.doctor_id == Doctor.id)
        .join(User, Doctor.user_id == User.id)
        .filter(MedicalRecord.patient_id == patient_id)
        .order_by(MedicalRecord.visit_date.desc(), MedicalRecord.id.desc())
        .all()
    )
    return [
        MedicalRecordWithDoctor(
            **MedicalRecordResponse.model_validate(r).model_dump(),
            doctor=DoctorWithUser.model_validate(d),
        )
        for r, d in rows
    ]
