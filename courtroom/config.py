import os
from dotenv import load_dotenv

load_dotenv()

DB_URL = os.getenv("DB_URL", "sqlite:///./data.db")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]

# Case progression policy
COUNTER_ARGUMENT_QUOTA = int(os.getenv("COUNTER_ARGUMENT_QUOTA", "5"))
FINAL_COUNTER_THRESHOLD = int(os.getenv("FINAL_COUNTER_THRESHOLD", "8"))
# 0 disables the argument-volume closure heuristic
CLOSURE_ARGUMENT_THRESHOLD = int(os.getenv("CLOSURE_ARGUMENT_THRESHOLD", "10"))
CLOSURE_TEXT_MARKERS = [
    m.strip().lower()
    for m in os.getenv("CLOSURE_TEXT_MARKERS", "final decision,case closed,verdict").split(",")
    if m.strip()
]

# Adjudicator (any OpenAI-compatible chat completions endpoint)
ADJUDICATOR_API_KEY = (
    os.getenv("ADJUDICATOR_API_KEY")
    or os.getenv("GROQ_API_KEY")
    or os.getenv("OPENROUTER_API_KEY")
    or ""
)
ADJUDICATOR_BASE_URL = os.getenv(
    "ADJUDICATOR_BASE_URL", "https://api.groq.com/openai/v1/chat/completions"
)
ADJUDICATOR_MODEL = os.getenv("ADJUDICATOR_MODEL", "llama-3.3-70b-versatile")
ADJUDICATOR_TIMEOUT = float(os.getenv("ADJUDICATOR_TIMEOUT", "60"))
ADJUDICATOR_MAX_TOKENS = int(os.getenv("ADJUDICATOR_MAX_TOKENS", "1024"))
ADJUDICATOR_TEMPERATURE = float(os.getenv("ADJUDICATOR_TEMPERATURE", "0.3"))

# Live events
SUBSCRIBER_QUEUE_SIZE = int(os.getenv("SUBSCRIBER_QUEUE_SIZE", "100"))
SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", "15"))
# how often an idle SSE stream checks its queue and the client connection
SSE_POLL_SECONDS = float(os.getenv("SSE_POLL_SECONDS", "0.1"))
