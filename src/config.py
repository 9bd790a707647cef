"""Configuration module for the School Scheduler service.

This module provides centralized configuration management, including directory
paths, database location, API server settings, and scheduling defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/school_scheduler.db"
)

# Seconds a SQLite connection waits on a locked database before giving up
SQLITE_BUSY_TIMEOUT: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Scheduling Configuration ---

# Timezone used to decide what "today" is when listing upcoming slots
SCHOOL_TIMEZONE: str = os.getenv("SCHOOL_TIMEZONE", "Europe/Paris")

# Default length of a generated appointment slot
DEFAULT_SLOT_DURATION_MINUTES: int = int(
    os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "15")
)

# Number of appointments shown on the admin overview
RECENT_APPOINTMENTS_LIMIT: int = int(os.getenv("RECENT_APPOINTMENTS_LIMIT", "50"))

# --- Seed Data ---

# Access code created for the administration on first start
ADMIN_CODE: str = os.getenv("ADMIN_CODE", "ADMIN")
ADMIN_DISPLAY_NAME: str = "Administration"

# (code, display_name, class_name)
DEMO_TEACHER_CODES: List[Tuple[str, str, str]] = [
    ("DUPONT", "M. Dupont", "CM2"),
    ("MARTIN", "Mme Martin", "CM1"),
    ("BERNARD", "M. Bernard", "CE2"),
    ("PETIT", "Mme Petit", "CE1"),
    ("DURAND", "M. Durand", "CP"),
]

DEMO_PARENT_CODES: List[Tuple[str, str, str]] = [
    ("CM2", "Parents CM2", "CM2"),
    ("CM1", "Parents CM1", "CM1"),
    ("CE2", "Parents CE2", "CE2"),
    ("CE1", "Parents CE1", "CE1"),
    ("CP", "Parents CP", "CP"),
]
