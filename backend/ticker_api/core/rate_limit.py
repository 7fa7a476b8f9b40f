"""Rate limiting configuration."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)

# Rate limit configurations
RATE_LIMITS = {
    "default": "60/minute",   # Templates and cheap lookups
    "market": "20/minute",    # Endpoints spending provider key quota
    "llm": "10/minute",       # Language model calls
}
