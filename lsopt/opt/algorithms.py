"""
Iterative optimization algorithms: Gauss-Newton, Levenberg-Marquardt and
gradient descent over a :mod:`lsopt.opt.loss` object.

An algorithm goes through three states. It is unconfigured until
``initialize()`` is called, which evaluates the loss at the current
parameters and records that point as the best so far. Each ``step()``
then computes an increment, shifts the parameters by it, re-evaluates the
loss and updates the best-so-far record if the cost strictly decreased.
``iterate()`` steps until the stopping criterion is satisfied.

.. code-block:: python

    from lsopt.models import GaussianFunction
    from lsopt.opt.algorithms import LevenbergMarquardtAlgorithm

    alg = LevenbergMarquardtAlgorithm.from_function(
        GaussianFunction(1.0, 0.0, 1.0), xs, targets=ys, damping=1e-3)
    alg.initialize()
    alg.iterate()
    alg.solution_best, alg.error_best

Changing the function, inputs, robust function or loss puts the algorithm
back in the unconfigured state. Nothing here catches or retries: a
configuration or numerical error ends the run where it happens.
"""
import numpy as np

from lsopt import conf
from lsopt.logger import log
from lsopt.exceptions import ConfigurationError, NotInitializedError
from lsopt.opt.linalg import CholeskySolver
from lsopt.opt.loss import (DifferentiableLoss, LocallyQuadraticLoss,
                            SquaredErrorLoss, check_column)
from lsopt.opt.stopping import default_stopping_criterion
CLOG = log.getChild('algorithms')


def _copy(a):
    return None if a is None else a.copy()


class IterativeOptimizationAlgorithm(object):
    # the least a loss has to provide for compute_step
    loss_type = DifferentiableLoss

    def __init__(self, loss=None, stopping_criterion=None):
        """Superclass for optimizers which improve the parameters of a
        loss one step at a time.

        Parameters
        ----------
        loss : :class:`lsopt.opt.loss.Loss` or None, optional
            The loss to minimize. Can also be set later with ``set_loss``.
        stopping_criterion : :class:`lsopt.opt.stopping.StoppingCriterion`
            When ``iterate`` stops. Default is None, which means no
            improvement for ``max-iterations-without-improvement`` steps or
            ``max-iterations`` steps in total, from the configuration.
        """
        self.loss = loss
        if stopping_criterion is None:
            stopping_criterion = default_stopping_criterion()
        self.stopping_criterion = stopping_criterion
        self._initialized = False
        self._iteration_last = None
        self._iteration_best = None
        self._solution_last = None
        self._solution_best = None
        self._error_last = None
        self._error_best = None

    @classmethod
    def from_function(cls, function, inputs, targets=None, weights=None,
                      robust_function=None, mean=False,
                      stopping_criterion=None, **kwargs):
        """Builds the algorithm over a :class:`SquaredErrorLoss`.

        The extra keyword arguments go to the algorithm's constructor,
        e.g. ``damping`` or ``learning_rate``.
        """
        loss = SquaredErrorLoss(
            function, inputs, targets=targets, weights=weights,
            robust_function=robust_function, mean=mean)
        return cls(loss=loss, stopping_criterion=stopping_criterion,
                   **kwargs)

    # configuration
    def set_loss(self, loss):
        self.loss = loss
        self._initialized = False

    def _squared_error_loss(self):
        if not isinstance(self.loss, SquaredErrorLoss):
            raise ConfigurationError(
                'Only a SquaredErrorLoss has a function and inputs; '
                'use set_loss instead.')
        return self.loss

    def set_function(self, function):
        self._squared_error_loss().set_function(function)
        self._initialized = False

    def set_inputs(self, inputs):
        self._squared_error_loss().set_inputs(inputs)
        self._initialized = False

    def set_targets(self, targets):
        self._squared_error_loss().set_targets(targets)
        self._initialized = False

    def set_weights(self, weights):
        self._squared_error_loss().set_weights(weights)
        self._initialized = False

    def set_robust_function(self, robust_function):
        self._squared_error_loss().set_robust_function(robust_function)
        self._initialized = False

    def set_stopping_criterion(self, stopping_criterion):
        self.stopping_criterion = stopping_criterion
        stopping_criterion.initialize()

    # running
    def initialize(self):
        """Evaluates the loss at its current parameters and starts a run
        there, as iteration 0. Calling it again restarts the run."""
        if self.loss is None:
            raise ConfigurationError('No loss to optimize.')
        if not isinstance(self.loss, self.loss_type):
            raise ConfigurationError('{} needs a {}, got {}'.format(
                self.__class__.__name__, self.loss_type.__name__,
                self.loss.__class__.__name__))
        cost = self.loss.initialize()
        theta = self.loss.get_parameters()
        check_column(theta, name='Parameters')

        self._iteration_last = 0
        self._solution_last = np.array(theta, dtype='float')
        self._error_last = cost
        self._record_best()
        self._initialize_step(self.loss.degrees_of_freedom())
        self.stopping_criterion.initialize()
        self._initialized = True
        CLOG.debug('Initial cost: {:.6g}'.format(cost))

    def _initialize_step(self, dof):
        pass

    def compute_step(self):
        """Returns the (D, 1) increment for the current parameters"""
        raise NotImplementedError('Implement in subclass')

    def step(self):
        if not self._initialized:
            raise NotInitializedError(
                'Call initialize() before step() or iterate().')
        delta = self.compute_step()
        self.loss.shift(delta)
        self._iteration_last += 1
        self._error_last = self.loss.cost
        self._solution_last = self.loss.get_parameters()
        if self._error_last < self._error_best:
            self._record_best()
        CLOG.debug('iteration {}: cost {:.6g}, step {:.3g}, best {:.6g}'
                   .format(self._iteration_last, self._error_last,
                           np.linalg.norm(delta), self._error_best))

    def _record_best(self):
        self._iteration_best = self._iteration_last
        self._solution_best = self._solution_last.copy()
        self._error_best = self._error_last

    def iterate(self):
        """Steps until the stopping criterion is satisfied; at least once.

        Returns
        -------
        numpy.ndarray
            The best parameters found, as ``solution_best``.
        """
        while True:
            self.step()
            if self.stopping_criterion.is_finished(self):
                break
        CLOG.info('Finished after iteration {}: best cost {:.6g} at '
                  'iteration {}'.format(self._iteration_last,
                  self._error_best, self._iteration_best))
        return self.solution_best

    # results
    @property
    def iteration_last(self):
        return self._iteration_last

    @property
    def iteration_best(self):
        return self._iteration_best

    @property
    def solution_last(self):
        return _copy(self._solution_last)

    @property
    def solution_best(self):
        return _copy(self._solution_best)

    @property
    def error_last(self):
        return self._error_last

    @property
    def error_best(self):
        return self._error_best


class GaussNewtonAlgorithm(IterativeOptimizationAlgorithm):
    loss_type = LocallyQuadraticLoss
    remedy = ('Using the Levenberg-Marquardt algorithm with a small damping '
              'factor can help.')

    def __init__(self, loss=None, stopping_criterion=None):
        """Steps to the minimum of the local quadratic model of the loss,

            delta = -hessian^{-1} gradient,

        solved by Cholesky factorization. Needs a LocallyQuadraticLoss, and
        fails with a NotPositiveDefiniteError where the Gauss-Newton matrix
        is singular.
        """
        super(GaussNewtonAlgorithm, self).__init__(
            loss=loss, stopping_criterion=stopping_criterion)
        self.solver = CholeskySolver(remedy=self.remedy)

    def get_damping_factor(self):
        return 0.0

    def _initialize_step(self, dof):
        self.solver.initialize(dof)

    def compute_step(self):
        return self.solver.solve(self.loss.gradient, self.loss.hessian,
                                 damping=self.get_damping_factor())


class LevenbergMarquardtAlgorithm(GaussNewtonAlgorithm):
    remedy = ('Setting a larger damping factor with set_damping_factor might '
              'help.')

    def __init__(self, loss=None, stopping_criterion=None, damping=None):
        """Gauss-Newton with a damping factor added to the diagonal,

            delta = -(damping * I + hessian)^{-1} gradient.

        The damping is held fixed over the run; zero gives the Gauss-Newton
        step, and larger values give shorter steps closer to the direction
        of steepest descent.

        Parameters
        ----------
        damping : float or None, optional
            The damping factor, >= 0. Default is None, for the ``damping``
            configuration value.
        """
        super(LevenbergMarquardtAlgorithm, self).__init__(
            loss=loss, stopping_criterion=stopping_criterion)
        if damping is None:
            damping = conf.load_conf()['damping']
        self.set_damping_factor(damping)

    def set_damping_factor(self, damping):
        if damping < 0:
            raise ConfigurationError(
                'Damping must be nonnegative, got {}'.format(damping))
        self.damping = float(damping)

    def get_damping_factor(self):
        return self.damping


class GradientDescentAlgorithm(IterativeOptimizationAlgorithm):
    def __init__(self, loss=None, stopping_criterion=None, learning_rate=None):
        """Steps down the gradient, ``delta = -learning_rate * gradient``.

        Parameters
        ----------
        learning_rate : float or None, optional
            The step size, > 0. Default is None, for the ``learning-rate``
            configuration value.
        """
        super(GradientDescentAlgorithm, self).__init__(
            loss=loss, stopping_criterion=stopping_criterion)
        if learning_rate is None:
            learning_rate = conf.load_conf()['learning-rate']
        self.set_learning_rate(learning_rate)

    def set_learning_rate(self, learning_rate):
        if learning_rate <= 0:
            raise ConfigurationError(
                'Learning rate must be positive, got {}'.format(learning_rate))
        self.learning_rate = float(learning_rate)

    def compute_step(self):
        return -self.learning_rate * self.loss.gradient
