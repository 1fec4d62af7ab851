"""
armafit Test Suite

Tests for the interpolation rules, numerical derivatives, strong Wolfe line
search, BFGS minimizer, ARMA Kalman filter and the maximum likelihood driver.
"""

# Version information for the test package
__version__ = "1.0.0"
