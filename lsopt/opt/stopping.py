"""
Stopping criteria decide when ``iterate()`` ends. They are asked once after
every step, with the algorithm itself as the argument, and read its
``iteration_last`` / ``error_best`` / ... properties.

Criteria may keep state between checks; ``initialize()`` clears it and is
called by the algorithm whenever a run starts. Composite criteria always
ask both of their parts, so stateful parts see every check.
"""
import numpy as np

from lsopt import conf
from lsopt.exceptions import ConfigurationError


class StoppingCriterion(object):
    def initialize(self):
        pass

    def is_finished(self, algorithm):
        raise NotImplementedError('Implement in subclass')


class IterationThresholdStoppingCriterion(StoppingCriterion):
    """Finished once ``algorithm.iteration_last >= threshold``"""
    def __init__(self, threshold):
        if threshold < 0:
            raise ConfigurationError('Iteration threshold must be >= 0')
        self.threshold = threshold

    def is_finished(self, algorithm):
        return algorithm.iteration_last >= self.threshold

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.threshold)


class MaximumIterationsWithoutImprovementStoppingCriterion(StoppingCriterion):
    """Finished once ``algorithm.error_best`` has not decreased for
    `max_iterations` consecutive checks."""
    def __init__(self, max_iterations):
        if max_iterations < 1:
            raise ConfigurationError('`max_iterations` must be >= 1')
        self.max_iterations = max_iterations
        self.initialize()

    def initialize(self):
        self.error_best_last = np.inf
        self.iterations_without_improvement = 0

    def is_finished(self, algorithm):
        error_best = algorithm.error_best
        if error_best < self.error_best_last:
            self.error_best_last = error_best
            self.iterations_without_improvement = 0
        else:
            self.iterations_without_improvement += 1
        return self.iterations_without_improvement >= self.max_iterations

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.max_iterations)


class _CompositeStoppingCriterion(StoppingCriterion):
    def __init__(self, first, second):
        self.first = first
        self.second = second

    def initialize(self):
        self.first.initialize()
        self.second.initialize()

    def __repr__(self):
        return '{}({!r}, {!r})'.format(
            self.__class__.__name__, self.first, self.second)


class OrStoppingCriterion(_CompositeStoppingCriterion):
    def is_finished(self, algorithm):
        first = self.first.is_finished(algorithm)
        second = self.second.is_finished(algorithm)
        return first or second


class AndStoppingCriterion(_CompositeStoppingCriterion):
    def is_finished(self, algorithm):
        first = self.first.is_finished(algorithm)
        second = self.second.is_finished(algorithm)
        return first and second


def default_stopping_criterion():
    """No improvement for a while, or too many iterations; the limits come
    from the ``max-iterations-without-improvement`` and ``max-iterations``
    configuration values."""
    cf = conf.load_conf()
    return OrStoppingCriterion(
        MaximumIterationsWithoutImprovementStoppingCriterion(
            cf['max-iterations-without-improvement']),
        IterationThresholdStoppingCriterion(cf['max-iterations']))
