# Routers mounted by patent_intake.main
from . import health, submit

__all__ = ["health", "submit"]
