"""Configuration and environment variables."""
from dotenv import load_dotenv
import os

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite+aiosqlite:///./telemetry.db"
DATABASE_URL = DATABASE_URL.replace("mariadb+mariadbconnector", "mariadb+aiomysql")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# OTA streaming pace between chunks (milliseconds)
OTA_CHUNK_DELAY_MS = int(os.getenv("OTA_CHUNK_DELAY_MS", "40"))

# Timeout for calls to the device's own HTTP server (seconds)
DEVICE_HTTP_TIMEOUT = float(os.getenv("DEVICE_HTTP_TIMEOUT", "5"))

# Firmware upload limit (bytes)
FIRMWARE_MAX_BYTES = int(os.getenv("FIRMWARE_MAX_BYTES", str(10 * 1024 * 1024)))

# CORS Origins
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
