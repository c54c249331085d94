# upstream/types.py

from enum import Enum

class UpstreamState(Enum):
    # Adapter created but start() not called yet or not complete
    INITIALIZING = "initializing"

    # Connected, property updates can be sent
    READY = "ready"

    # Connection lost or failed; updates fail until restart
    UNAVAILABLE = "unavailable"

    # Explicitly stopped via stop()
    STOPPED = "stopped"
