import os

# ---- upstream model endpoints ----
CHEAP_MODEL_URL = os.getenv("CHEAP_MODEL_URL", "http://localhost:8081/v1/chat/completions")
EXPENSIVE_MODEL_URL = os.getenv("EXPENSIVE_MODEL_URL", "http://localhost:8082/v1/chat/completions")
UPSTREAM_TIMEOUT_SEC = float(os.getenv("UPSTREAM_TIMEOUT_SEC", "30"))

# ---- credentials ----
API_KEY_ENV = "LLM_GATEWAY_API_KEY"
DEFAULT_API_KEY = os.getenv(API_KEY_ENV) or None  # only used when the caller sends none

# ---- routing policy ----
PROMPT_LENGTH_THRESHOLD = 150  # prompts longer than this go to the expensive model

# cost estimates, a proxy for token usage
CHEAP_COST_PER_CHAR = 0.0000001      # $0.10 per million characters
EXPENSIVE_COST_PER_CHAR = 0.0000015  # $1.50 per million characters

# ---- server ----
HOST = os.getenv("GATEWAY_HOST", "0.0.0.0")
PORT = int(os.getenv("GATEWAY_PORT", "8080"))
LOG_LEVEL = os.getenv("GATEWAY_LOG_LEVEL", "INFO")
