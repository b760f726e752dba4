# main.py
import logging
from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List
import crud
from auth import get_current_user
from conversations import get_recent_conversations
from database import engine, get_db, Base
from errors import NotFoundError, UnauthorizedError, ValidationError, register_error_handlers
from graphql_schema import graphql_app
from models import User
from schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentView,
    ConversationResponse,
    DoctorCreate,
    DoctorResponse,
    DoctorWithUser,
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordWithDoctor,
    MessageCreate,
    MessageResponse,
    MessagesReadResponse,
    PatientCreate,
    PatientResponse,
    UserResponse,
)
from utils import CORS_ORIGINS, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Hospital Management API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(graphql_app, prefix="/graphql")


# === Identity ===
@app.get("/api/auth/user", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


# === Doctors ===
@app.get("/api/doctors", response_model=List[DoctorWithUser])
def list_doctors(db: Session = Depends(get_db)):
    return crud.get_doctors(db)


@app.get("/api/doctors/{doctor_id}", response_model=DoctorWithUser)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    doctor = crud.get_doctor(db, doctor_id)
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


@app.post("/api/doctors", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(
    data: DoctorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if data.user_id != current_user.id:
        logger.warning("User %s tried to create a doctor profile for %s", current_user.id, data.user_id)
        raise UnauthorizedError("Unauthorized to create doctor profile for another user")
    if crud.get_doctor_by_user_id(db, data.user_id):
        raise ValidationError("userId: doctor profile already exists", field="userId")
    return crud.create_doctor(db, data)


# === Patients ===
@app.get("/api/patients/me", response_model=PatientResponse)
def get_my_patient_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    patient = crud.get_patient_by_user_id(db, current_user.id)
    if not patient:
        raise NotFoundError("Patient profile not found")
    return patient


@app.post("/api/patients", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    data: PatientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if data.user_id != current_user.id:
        logger.warning("User %s tried to create a patient profile for %s", current_user.id, data.user_id)
        raise UnauthorizedError("Unauthorized to create patient for another user")
    if crud.get_patient_by_user_id(db, data.user_id):
        raise ValidationError("userId: patient profile already exists", field="userId")
    return crud.create_patient(db, data)


# === Appointments ===
@app.get("/api/appointments", response_model=List[AppointmentView], response_model_exclude_unset=True)
def list_appointments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    doctor = crud.get_doctor_by_user_id(db, current_user.id)
    patient = crud.get_patient_by_user_id(db, current_user.id)

    if doctor:
        if patient:
            logger.warning("User %s has both doctor and patient profiles; serving the doctor view", current_user.id)
        return crud.get_appointments_for_doctor(db, doctor.id)
    if patient:
        return crud.get_appointments_for_patient(db, patient.id)
    return []


@app.post("/api/appointments", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    patient = crud.get_patient_by_user_id(db, current_user.id)
    if not patient or patient.id != data.patient_id:
        logger.warning("User %s tried to book for patient %s", current_user.id, data.patient_id)
        raise UnauthorizedError("Unauthorized to book for another patient")
    if not crud.get_doctor(db, data.doctor_id):
        raise ValidationError("doctorId: doctor not found", field="doctorId")
    return crud.create_appointment(db, data)


@app.patch("/api/appointments/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appointment = crud.get_appointment(db, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")

    # Either party may change the status
    doctor = crud.get_doctor_by_user_id(db, current_user.id)
    patient = crud.get_patient_by_user_id(db, current_user.id)
    is_doctor = doctor is not None and doctor.id == appointment.doctor_id
    is_patient = patient is not None and patient.id == appointment.patient_id
    if not (is_doctor or is_patient):
        logger.warning("User %s is not a party to appointment %s", current_user.id, appointment_id)
        raise UnauthorizedError("Unauthorized to update this appointment")

    # an omitted "notes" keeps the current text; an explicit null clears it
    notes = data.notes if "notes" in data.model_fields_set else appointment.notes
    return crud.update_appointment_status(db, appointment_id, data.status, notes)


# === Messages ===
@app.get("/api/messages/conversations", response_model=List[ConversationResponse])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_recent_conversations(db, current_user.id)


@app.get("/api/messages/{user_id}", response_model=List[MessageResponse])
def list_messages(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_messages_between_users(db, current_user.id, user_id)


@app.post("/api/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    data: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if data.sender_id != current_user.id:
        logger.warning("User %s tried to send as %s", current_user.id, data.sender_id)
        raise UnauthorizedError("Unauthorized sender")
    if not crud.get_user(db, data.receiver_id):
        raise ValidationError("receiverId: recipient not found", field="receiverId")
    return crud.create_message(db, data)


@app.post("/api/messages/{user_id}/read", response_model=MessagesReadResponse)
def mark_conversation_read(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    updated = crud.mark_messages_read(db, receiver_id=current_user.id, sender_id=user_id)
    return MessagesReadResponse(updated=updated)


# === Medical records ===
@app.get("/api/medical-records", response_model=List[MedicalRecordWithDoctor])
def list_medical_records(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    patient = crud.get_patient_by_user_id(db, current_user.id)
    if not patient:
        raise NotFoundError("Patient not found")
    return crud.get_medical_records_for_patient(db, patient.id)


@app.post("/api/medical-records", response_model=MedicalRecordResponse, status_code=status.HTTP_201_CREATED)
def create_medical_record(
    data: MedicalRecordCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    doctor = crud.get_doctor_by_user_id(db, current_user.id)
    if not doctor or doctor.id != data.doctor_id:
        logger.warning("User %s tried to write a record as doctor %s", current_user.id, data.doctor_id)
        raise UnauthorizedError("Only the treating doctor can add a medical record")
    if not crud.get_patient(db, data.patient_id):
        raise ValidationError("patientId: patient not found", field="patientId")
    return crud.create_medical_record(db, data)
