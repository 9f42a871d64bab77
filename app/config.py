import os

from dotenv import load_dotenv

load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-3-pro-image-preview")
GEMINI_ANALYSIS_MODEL = os.getenv("GEMINI_ANALYSIS_MODEL", "gemini-3-flash-preview")
OPENAI_ANALYSIS_MODEL = os.getenv("OPENAI_ANALYSIS_MODEL", "gpt-5.1")

# "gemini" or "openai"
ANALYSIS_PROVIDER = os.getenv("ANALYSIS_PROVIDER", "gemini").lower()

# Seconds between status phrases while the image is being analyzed
PHRASE_INTERVAL = float(os.getenv("PHRASE_INTERVAL", "1.8"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8002"))

# Browser sessions kept in memory; idle ones expire after SESSION_TTL seconds
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "256"))
SESSION_TTL = float(os.getenv("SESSION_TTL", "1800"))
