"""Storage package for QA results and issue statuses."""

from .dal import QARepository, InMemoryQARepository, JsonFileQARepository

__all__ = [
    'QARepository',
    'InMemoryQARepository',
    'JsonFileQARepository'
]
