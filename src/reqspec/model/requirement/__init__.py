from .requirement_model import Requirement

__all__ = [
    "Requirement"
]
