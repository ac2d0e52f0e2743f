"""Application UnitOfWork – transactional boundary port."""
from appendlog.application.uow.unit_of_work import UnitOfWork

__all__ = ["UnitOfWork"]
