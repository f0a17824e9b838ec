from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Text-completion endpoints cost money per call
AI_RATE_LIMIT = "30/minute"
STATUS_RATE_LIMIT = "60/minute"
