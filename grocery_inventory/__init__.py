from .config import config
from .db import db, session_scope
from .logging_setup import logger, get_logger
from .exceptions import (
    InventoryError, NotFoundError, ValidationError, BatchError,
    QuantityAdjustmentError, NotImplementedFeatureError
)

__all__ = [
    'config',
    'db',
    'session_scope',
    'logger',
    'get_logger',
    'InventoryError',
    'NotFoundError',
    'ValidationError',
    'BatchError',
    'QuantityAdjustmentError',
    'NotImplementedFeatureError'
]
