"""
armafit Optimization Module

Unconstrained minimization of smooth functions:
- Interpolation rules for one dimensional minimizers
- Strong Wolfe line search
- BFGS quasi-Newton minimizer
"""

import logging

# Set up module-level logger
logger = logging.getLogger("armafit.optim")

from .interpolation import (
    quadratic_minimum,
    cubic_is_defined,
    cubic_minimum,
    secant_minimum,
    three_point_minimum,
)

from .line_search import (
    LineFunction,
    StrongWolfeLineSearch,
    strong_wolfe_search,
)

from .bfgs import (
    BFGS,
    bfgs_minimize,
)

__all__ = [
    'quadratic_minimum', 'cubic_is_defined', 'cubic_minimum', 'secant_minimum',
    'three_point_minimum',
    'LineFunction', 'StrongWolfeLineSearch', 'strong_wolfe_search',
    'BFGS', 'bfgs_minimize',
]
