# patchwork/utils/__init__.py
"""
patchwork.utils: Workflow utilities.
Includes:
    Colored Logger (hue_logger.py),
    Evaluation Metrics (metrics.py),
"""

# Hoist from hue_logger (Colored Logger)
from .hue_logger import HueLogger, hue, logger

# Hoist from metrics (Evaluation Metrics)
from .metrics import negative_log_likelihood, root_mean_square_error, evaluate


__all__ = [
    # Colored Logger
    "HueLogger", "hue", "logger",

    # Evaluation Metrics
    "negative_log_likelihood", "root_mean_square_error", "evaluate",
]
