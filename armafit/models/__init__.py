"""
armafit Models Module

Statistical models whose likelihoods are optimized by ``armafit.optim``.
Currently this is the ARMA family in ``armafit.models.arma``.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("armafit.models")

from . import arma

__all__ = ['arma']
