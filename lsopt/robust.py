"""
Robust functions reshape the squared residual norm ``s = |e|^2`` of each
sample before it enters the cost, to limit the pull of outliers.

Every function provides the shaped value ``f(s)`` and its derivative
``f1(s) = df/ds``. The losses use ``f`` for the cost and ``f1`` as the
per-sample weight in the gradient and the Gauss-Newton matrix, so the
weights are recomputed from the current residuals on every evaluation
(iteratively reweighted least squares).

The scale parameter ``k`` of the bounded functions is a distance in
residual units; residuals much smaller than ``k`` are treated nearly as in
plain least squares.
"""
import numpy as np

from lsopt.exceptions import ConfigurationError


class RobustFunction(object):
    def f(self, s):
        raise NotImplementedError('Implement in subclass')

    def f1(self, s):
        raise NotImplementedError('Implement in subclass')

    def __repr__(self):
        return '{}()'.format(self.__class__.__name__)


class IdentityRobustFunction(RobustFunction):
    """f(s) = s, plain least squares"""
    def f(self, s):
        return s

    def f1(self, s):
        return 1.0


class _ScaledRobustFunction(RobustFunction):
    def __init__(self, k=1.0):
        if k <= 0:
            raise ConfigurationError(
                'Robust scale `k` must be positive, got {}'.format(k))
        self.k = float(k)
        self.k2 = self.k * self.k

    def __repr__(self):
        return '{}(k={})'.format(self.__class__.__name__, self.k)


class CauchyRobustFunction(_ScaledRobustFunction):
    """f(s) = k^2/2 log(1 + s/k^2)"""
    def f(self, s):
        return 0.5 * self.k2 * np.log1p(s / self.k2)

    def f1(self, s):
        return 0.5 / (1 + s / self.k2)


class WelschRobustFunction(_ScaledRobustFunction):
    """f(s) = k^2/2 (1 - exp(-s/k^2)); saturates at k^2/2"""
    def f(self, s):
        return 0.5 * self.k2 * (1 - np.exp(-s / self.k2))

    def f1(self, s):
        return 0.5 * np.exp(-s / self.k2)


class MaximumDistanceRobustFunction(_ScaledRobustFunction):
    """f(s) = min(s, k^2); samples beyond `k` stop contributing a gradient"""
    def f(self, s):
        return min(s, self.k2)

    def f1(self, s):
        return 1.0 if s < self.k2 else 0.0


ROBUST_FUNCTIONS = {
    'identity': IdentityRobustFunction,
    'cauchy': CauchyRobustFunction,
    'welsch': WelschRobustFunction,
    'maximum-distance': MaximumDistanceRobustFunction,
}


def get_robust_function(name, k=1.0):
    """Returns a robust function by its name in ``ROBUST_FUNCTIONS``"""
    if name not in ROBUST_FUNCTIONS:
        raise ConfigurationError('`name` must be one of {}'.format(
            sorted(ROBUST_FUNCTIONS.keys())))
    if name == 'identity':
        return IdentityRobustFunction()
    return ROBUST_FUNCTIONS[name](k=k)
