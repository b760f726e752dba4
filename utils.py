# utils.py
import os

SECRET_KEY = os.getenv("AUTH_SECRET_KEY", "changeme")
ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
AUDIENCE = os.getenv("AUTH_AUDIENCE", "hospital-users")
ISSUER = os.getenv("AUTH_ISSUER", "hospital-auth")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hospital.db")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
