"""
Configuration management for the SetterFlow lead dashboard.
Uses environment variables for sensitive data.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / "data"
DATA_DIR.mkdir(exist_ok=True)

# Google Sheets Configuration
GOOGLE_SHEET_ID = os.getenv("GOOGLE_SHEET_ID", "")
LEADS_SHEET_NAME = os.getenv("LEADS_SHEET_NAME", "leads_typeform_setter")
STUDENTS_SHEET_NAME = os.getenv("STUDENTS_SHEET_NAME", "alumnos")
SERVICE_ACCOUNT_PATH = DATA_DIR / "service_account.json"


def validate_store_config():
    """Check the record store settings before the first connection."""
    if not GOOGLE_SHEET_ID:
        raise ValueError("GOOGLE_SHEET_ID environment variable is required")

    if not SERVICE_ACCOUNT_PATH.exists():
        raise FileNotFoundError(
            f"Service account file not found at {SERVICE_ACCOUNT_PATH}. "
            "Please add your Google Service Account JSON file."
        )


# Database Configuration (notes, admin users, audit log)
DATABASE_PATH = DATA_DIR / "database.db"

# Local timezone used for calendar dates ("today", range endpoints)
TIMEZONE = os.getenv("TIMEZONE", "Europe/Madrid")

# Polling Configuration
SHEET_POLL_INTERVAL = int(os.getenv("SHEET_POLL_INTERVAL", 300))  # seconds (5 minutes default)

# Pagination
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 20))
MAX_PAGE_SIZE = 200

# Notes longer than this are truncated
NOTE_MAX_LENGTH = 5000

# Lead sheet columns
LEAD_COLUMNS = {
    "ID": 0,
    "Name": 1,  # "nombre"
    "Phone": 2,  # "telefono"
    "Country": 3,  # "pais"
    "Interest": 4,  # "interes"
    "Profile": 5,  # "perfil"
    "Challenges": 6,  # "desafios"
    "Budget": 7,  # "presupuesto"
    "Availability": 8,  # "disponibilidad"
    "Commitment": 9,  # "compromiso"
    "Seniority": 10,  # "antiguedad"
    "Registered_Date": 11,  # "fecha_registro"
    "Registered_Time": 12,  # "hora_registro"
    "Status": 13,  # "estado"
    "Qualifies": 14,  # "califica"
    "Cash_Collected": 15,
    "Last_Update": 16,
}

# Student sheet columns
STUDENT_COLUMNS = {
    "ID": 0,
    "First_Name": 1,  # "nombre"
    "Last_Name": 2,  # "apellidos"
    "Phone": 3,
    "Email": 4,
    "Country": 5,
    "Status": 6,  # "estado_general"
    "Total_Investment": 7,  # "inversion_total"
    "Pending_Amount": 8,  # "importe_pendiente"
    "Purchase_Date": 9,  # "fecha_compra"
    "Course": 10,  # "curso"
    "Notes": 11,
    "Last_Update": 12,
}

# Lead Status Values (open set; unknown values are kept as-is)
STATUS_INCOMPLETE = "Formulario incompleto"
STATUS_COMPLETE = "Formulario completo"
STATUS_CONTACTED = "Contactado"
STATUS_QUALIFIED = "Calificado"
STATUS_PENDING = "Pendiente"
STATUS_NOT_SUITABLE = "No apto"

KNOWN_LEAD_STATUSES = [
    STATUS_INCOMPLETE,
    STATUS_COMPLETE,
    STATUS_CONTACTED,
    STATUS_QUALIFIED,
    STATUS_PENDING,
    STATUS_NOT_SUITABLE,
]

# Student Status Values
STUDENT_STATUS_ACTIVE = "Activo"
STUDENT_STATUS_INACTIVE = "Inactivo"
STUDENT_STATUS_PENDING = "Pendiente"
STUDENT_STATUS_PAID = "Pagado"

KNOWN_STUDENT_STATUSES = [
    STUDENT_STATUS_ACTIVE,
    STUDENT_STATUS_INACTIVE,
    STUDENT_STATUS_PENDING,
    STUDENT_STATUS_PAID,
]

# "All statuses" option of the list filters
STATUS_FILTER_ALL = "Todos"

# Normalized values of the "Qualifies" column
QUALIFIES_YES = "si"
QUALIFIES_NO = "no"

# Bucket name for blank country / status
UNKNOWN_BUCKET = "Unknown"

# User Roles
ROLE_ADMIN = "admin"
ROLE_CLOSER = "closer"

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = DATA_DIR / "dashboard.log"

# Retry Configuration
MAX_RETRIES = 3
RETRY_DELAY = 5  # seconds

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 480))  # 8 hours
