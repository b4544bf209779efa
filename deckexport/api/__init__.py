# deckexport API
#
# The FastAPI app lives in deckexport.api.main; it is not imported here so
# that the renderer can read settings without pulling in the web stack.

from .config import get_settings, Settings

__all__ = [
    'get_settings',
    'Settings',
]
