"""Configuration constants for the Psicomotriz web service."""
from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

ADMIN_PIN = os.environ.get("ADMIN_PIN", "4321")
SESSION_SECRET = os.environ.get("SESSION_SECRET", "change-this-session-secret")
SQLITE_FILE_NAME = os.environ.get("PSICOMOTRIZ_SQLITE", "psicomotriz.db")
_EVENT_LOG = os.environ.get("PSICOMOTRIZ_EVENT_LOG", "")
EVENT_LOG_PATH: Optional[Path] = Path(_EVENT_LOG) if _EVENT_LOG else None
DEFAULT_COMMISSION_PERCENTAGE = Decimal(os.environ.get("DEFAULT_COMMISSION_PERCENTAGE", "25"))

ROLE_ADMIN = "admin"
ROLE_PROFESSIONAL = "professional"
USER_ROLES: Tuple[str, ...] = (ROLE_ADMIN, ROLE_PROFESSIONAL)
ROLE_LABELS: Dict[str, str] = {ROLE_ADMIN: "Administración", ROLE_PROFESSIONAL: "Profesional"}

MODULE_NAMES: Tuple[str, ...] = (
    "Estimulación Temprana",
    "Integración Sensorial",
    "Psicomotricidad",
    "Lenguaje",
    "Aprendizaje",
    "Conducta",
    "Desarrollo Social",
    "Terapia Ocupacional",
    "Fisioterapia",
    "Psicología",
    "Musicoterapia",
)

__all__ = [
    "ADMIN_PIN",
    "DEFAULT_COMMISSION_PERCENTAGE",
    "EVENT_LOG_PATH",
    "MODULE_NAMES",
    "ROLE_ADMIN",
    "ROLE_LABELS",
    "ROLE_PROFESSIONAL",
    "SESSION_SECRET",
    "SQLITE_FILE_NAME",
    "USER_ROLES",
]
