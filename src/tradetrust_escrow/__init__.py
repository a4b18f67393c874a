from .logger import setup_logger
from .exceptions import EscrowError

__all__ = [
    "setup_logger",
    "EscrowError",
]
