from backoffice.repositories.core.counter_repository import CounterRepository

__all__ = ["CounterRepository"]
