from .date_utils import convert_to_date, days_between, lookback_start
from .math_utils import safe_divide, mean, linear_regression

__all__ = [
    'convert_to_date',
    'days_between',
    'lookback_start',
    'safe_divide',
    'mean',
    'linear_regression'
]
