from slowapi import Limiter
from slowapi.util import get_remote_address

# Per client address; shared by main (exception handler) and routers (decorators)
limiter = Limiter(key_func=get_remote_address)
