from backoffice.repositories.batch.batch_repository import BatchRepository

__all__ = ["BatchRepository"]
