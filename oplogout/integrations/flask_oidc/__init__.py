from .end_session import EndSession

__all__ = ["EndSession"]
