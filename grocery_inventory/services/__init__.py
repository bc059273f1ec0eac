from .batch_service import BatchService
from .consumption_service import ConsumptionService
from .prediction_service import PredictionService
from .optimization_service import OptimizationService
from .reporting_service import ReportingService

__all__ = [
    'BatchService',
    'ConsumptionService',
    'PredictionService',
    'OptimizationService',
    'ReportingService'
]
