"""
config.py

Central place to load environment variables.
"""

from dotenv import load_dotenv
import os

# Load variables from .env file into environment
load_dotenv()

# Inference provider
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
INFERENCE_PROVIDER = os.getenv("INFERENCE_PROVIDER", "openai").lower()
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60"))
PROVIDER_MAX_TOKENS = int(os.getenv("PROVIDER_MAX_TOKENS", "4096"))

# Image normalization (longest side, in pixels)
MAX_IMAGE_DIMENSION = int(os.getenv("MAX_IMAGE_DIMENSION", "2048"))

# Backend persistence API (in-memory store is used when unset)
TIMETABLE_BACKEND_URL = os.getenv("TIMETABLE_BACKEND_URL")
TIMETABLE_BACKEND_TOKEN = os.getenv("TIMETABLE_BACKEND_TOKEN", "")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Comma separated list of allowed browser origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:3001,http://localhost:5173,"
        "http://127.0.0.1:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
