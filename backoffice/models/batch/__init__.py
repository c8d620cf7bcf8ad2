from backoffice.models.batch.batch import Batch
from backoffice.models.batch.batch_session import BatchSession
from backoffice.models.batch.batch_student import BatchStudent

__all__ = ["Batch", "BatchSession", "BatchStudent"]
