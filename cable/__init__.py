from cable.config import cable_config
from cable.models import CableEnvelope, CableErrorEnvelope, CableErrorReport

__all__ = (
    "cable_config",
    "CableEnvelope",
    "CableErrorEnvelope",
    "CableErrorReport",
)
