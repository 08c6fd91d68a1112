"""
Configuration, constants, and service initialization.
"""

import os
import re
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
import google.generativeai as genai

# --- LOAD ENV ---
load_dotenv()

# --- LOGGING ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("mindflow")


def log_event(level: int, message: str, **data):
    """Lightweight structured logging helper."""
    try:
        serialized = " | ".join(f"{k}={v}" for k, v in data.items())
        logger.log(level, f"{message}{' | ' + serialized if serialized else ''}")
    except Exception:
        logger.log(level, message)


# --- PATHS ---
DATA_DIR = Path(os.getenv("MINDFLOW_DATA_DIR", Path(__file__).parent / "data"))

# --- CONSTANTS ---
FALLBACK_CATEGORY = "Misc"
NEW_CATEGORY_NAME = "New Category"
DEFAULT_SESSION_NAME = "default"
MAX_QUEUE_RESULTS = 100
CHATGPT_URL = "https://chat.openai.com/"

# --- API KEYS ---
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

# --- INITIALIZE SERVICES ---

# Groq client for Whisper transcription
groq_client = None
if GROQ_API_KEY:
    from groq import Groq
    groq_client = Groq(api_key=GROQ_API_KEY)

# Gemini for categorization and grouping
gemini_model = None
if GEMINI_API_KEY:
    genai.configure(api_key=GEMINI_API_KEY)
    gemini_model = genai.GenerativeModel(GEMINI_MODEL)


# --- SESSION HELPERS ---

def slugify_session(name: str) -> str:
    """Convert session name to a file-safe slug."""
    cleaned = name.strip().lower() if name else DEFAULT_SESSION_NAME
    cleaned = re.sub(r"[^a-z0-9]+", "-", cleaned).strip("-")
    return cleaned or DEFAULT_SESSION_NAME


def resolve_session_name(value: Optional[str]) -> str:
    """Resolve session name from input, falling back to default."""
    return value.strip() if value and value.strip() else DEFAULT_SESSION_NAME


def get_session_path(session_name: str) -> Path:
    """Get the file path for a session's thoughts."""
    slug = slugify_session(session_name)
    return DATA_DIR / f"{slug}.json"
