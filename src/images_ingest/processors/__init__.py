"""Variant fan-out strategies."""

from .serial import derive_all as serial_derive_all
from .multithread import derive_all as multithread_derive_all

PROCESSORS = {
    "serial": serial_derive_all,
    "multithread": multithread_derive_all,
}

__all__ = [
    "PROCESSORS",
    "serial_derive_all",
    "multithread_derive_all",
]
