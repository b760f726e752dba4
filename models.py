# models.py
from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")


class User(Base):
    """Local mirror of the identity provider's user, keyed by the token subject."""
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), unique=True, nullable=False)
    specialty = Column(String(100), nullable=False)
    license_number = Column(String(50), nullable=False)
    years_of_experience = Column(Integer, nullable=False)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Integer, nullable=False)
    available_days = Column(JSON, nullable=False)  # ["Monday", "Wednesday"]
    start_time = Column(String(5), nullable=False)  # "09:00"
    end_time = Column(String(5), nullable=False)  # "17:00"
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", lazy="joined")
    appointments = relationship("Appointment", back_populates="doctor")
    records = relationship("MedicalRecord", back_populates="doctor")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), unique=True, nullable=False)
    date_of_birth = Column(String(10), nullable=False)  # ISO date
    gender = Column(String(20), nullable=False)
    blood_type = Column(String(5), nullable=True)
    allergies = Column(Text, nullable=True)
    emergency_contact_name = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", lazy="joined")
    appointments = relationship("Appointment", back_populates="patient")
    records = relationship("MedicalRecord", back_populates="patient")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), index=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True, nullable=False)
    date = Column(String(10), nullable=False)  # ISO date
    time = Column(String(5), nullable=False)  # "14:30"
    status = Column(String(20), nullable=False, default="pending")
    reason = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(String(255), ForeignKey("users.id"), index=True, nullable=False)
    receiver_id = Column(String(255), ForeignKey("users.id"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), index=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    diagnosis = Column(Text, nullable=False)
    prescription = Column(Text, nullable=False)
    test_results = Column(Text, nullable=True)  # free text or a file URL
    treatment_plan = Column(Text, nullable=True)
    visit_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    patient = relationship("Patient", back_populates="records")
    doctor = relationship("Doctor", back_populates="records")
