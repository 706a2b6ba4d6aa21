# barber_booking/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite database (file-based)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barber.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Width of one bookable slot, in minutes
SLOT_WIDTH = int(os.getenv("SLOT_WIDTH", "15"))

# How many days ahead availability is generated by default
AVAILABILITY_DAYS = int(os.getenv("AVAILABILITY_DAYS", "30"))

# Extra attempts after losing a claim race before giving up
CLAIM_RETRIES = int(os.getenv("CLAIM_RETRIES", "2"))

# Working hours used when a barber has not configured any (0 = Sunday)
DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5, 6]
DEFAULT_START = "09:00"
DEFAULT_END = "18:00"

BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled")
