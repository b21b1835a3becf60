"""
Type definitions for the PySoundboard core module.
Provides type aliases and protocols shared across components.
"""
from typing import Any, Callable, Protocol
import numpy as np
from numpy.typing import NDArray

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (samples,) or (samples, channels)
MonoArray = NDArray[np.float32]   # Shape: (samples,)
BucketArray = NDArray[np.float32] # Shape: (bucket_count,)

# Wire payloads exchanged with the engine
Payload = dict[str, Any]

# Callback types
FileReader = Callable[[str], bytes]


class OutputStream(Protocol):
    """Subset of ``sounddevice.OutputStream`` the players rely on."""
    active: bool

    def start(self) -> None: ...
    def stop(self) -> None: ...
    def close(self) -> None: ...


StreamFactory = Callable[..., OutputStream]
