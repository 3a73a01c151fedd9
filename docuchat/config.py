import logging
import os

from dotenv import load_dotenv

# ------------------ Load environment ------------------
load_dotenv()

ANSWERING_BACKEND = os.getenv("ANSWERING_BACKEND", "endpoint")
ANSWER_ENDPOINT_URL = os.getenv("ANSWER_ENDPOINT_URL", "http://127.0.0.1:3000/api/gemini")
ANSWER_TIMEOUT = float(os.getenv("ANSWER_TIMEOUT", "60"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")

# Keep this in sync with the installed PyPDF2 release
PDF_WORKER_VERSION = os.getenv("PDF_WORKER_VERSION", "3.0.1")
PDF_WORKER_THREADS = int(os.getenv("PDF_WORKER_THREADS", "2"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None):
    """Configure root logging once for the service."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
