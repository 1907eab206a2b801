"""Central ORM module — imports all models for metadata discovery."""

from api.pastas.orm import PastaModel

__all__ = [
    "PastaModel",
]
