from .counter_service import CounterService

__all__ = ["CounterService"]
