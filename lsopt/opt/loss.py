"""
Losses: scalar costs of a parameter vector, and what the optimizers need to
know about their local shape.

There are three levels of capability,

* :class:`Loss`: a cost of parameters that know how to shift,
* :class:`DifferentiableLoss`: plus the gradient of the cost,
* :class:`LocallyQuadraticLoss`: plus a Gauss-Newton matrix, i.e. a
  positive semi-definite approximation of the Hessian,

and one routine which implements all of them for least-squares problems,
:class:`SquaredErrorLoss`. It evaluates a function over a list of inputs and
sums the per-sample contributions,

    cost     = sum_i  w_i g(s_i)
    gradient = sum_i  J_i^T (w_i g'(s_i)) e_i
    hessian  = sum_i  J_i^T (w_i g'(s_i)) J_i

with ``e_i`` the residual of sample i (minus its target, if any),
``s_i = |e_i|^2``, ``w_i`` the sample weight and ``g`` the robust function.
The targets, weights and robust function are each a contribution strategy
in a chain built at construction; the named losses at the bottom of this
module are only preset chains.

The gradient and Gauss-Newton matrix are those of one half of the cost;
a Gauss-Newton step is then ``-hessian^{-1} gradient``.

All three quantities are computed together in one pass over the inputs and
kept in a :class:`LossCache` until something invalidates it. Repeated reads
in between return the very same arrays without calling the function.
"""
import numpy as np

from lsopt.logger import log
from lsopt.exceptions import ConfigurationError
from lsopt.robust import IdentityRobustFunction
CLOG = log.getChild('loss')


class LossCache(object):
    """The cost, gradient and Gauss-Newton matrix of the last evaluation,
    with a flag saying whether they still describe the current state."""
    def __init__(self):
        self.valid = False
        self.cost = None
        self.gradient = None
        self.hessian = None

    def invalidate(self):
        self.valid = False

    def recompute_if_stale(self, compute):
        """Refill the cache from ``compute() -> (cost, gradient, hessian)``
        unless it is valid already."""
        if not self.valid:
            self.cost, self.gradient, self.hessian = compute()
            self.valid = True
        return self


def check_column(a, name='vector'):
    """Raises a ConfigurationError unless `a` is an (n, 1) array"""
    shape = np.shape(a)
    if len(shape) != 2 or shape[1] != 1:
        raise ConfigurationError(
            '{} must be a column of shape (n, 1); got {}'.format(name, shape))


class Loss(object):
    """Superclass for a scalar cost of a parameter vector.

    Subclasses implement ``get_parameters``, ``set_parameters``,
    ``degrees_of_freedom``, ``shift`` and ``_compute``, which returns the
    tuple ``(cost, gradient, hessian)``; entries a loss cannot provide are
    None.
    """
    def __init__(self):
        self.cache = LossCache()

    def initialize(self):
        """Validate the setup and evaluate at the current parameters"""
        self.cache.invalidate()
        return self.cost

    def invalidate(self):
        self.cache.invalidate()

    def get_parameters(self):
        raise NotImplementedError('Implement in subclass')

    def set_parameters(self, theta):
        raise NotImplementedError('Implement in subclass')

    def degrees_of_freedom(self):
        raise NotImplementedError('Implement in subclass')

    def shift(self, delta):
        raise NotImplementedError('Implement in subclass')

    def _compute(self):
        raise NotImplementedError('Implement in subclass')

    @property
    def cost(self):
        return self.cache.recompute_if_stale(self._compute).cost


class DifferentiableLoss(Loss):
    @property
    def gradient(self):
        """The (D, 1) gradient of half the cost"""
        return self.cache.recompute_if_stale(self._compute).gradient


class LocallyQuadraticLoss(DifferentiableLoss):
    @property
    def hessian(self):
        """The (D, D) Gauss-Newton matrix"""
        return self.cache.recompute_if_stale(self._compute).hessian


# Per-sample contribution strategies. ``residual`` acts on the raw output of
# the function; ``scale`` turns the squared norm into (cost, weight).
class Contribution(object):
    def residual(self, index, e):
        return e

    def scale(self, index, s, cost, weight):
        return cost, weight


class TargetSubtraction(Contribution):
    """e_i <- f_i - y_i"""
    def __init__(self, targets):
        self.targets = [np.asarray(y, dtype='float') for y in targets]

    def residual(self, index, e):
        y = self.targets[index]
        if y.shape != e.shape:
            raise ConfigurationError(
                'Target {} has shape {}, output has shape {}'.format(
                    index, y.shape, e.shape))
        return e - y


class RobustScaling(Contribution):
    """cost_i = g(s_i), weight_i = g'(s_i)"""
    def __init__(self, robust_function):
        self.robust_function = robust_function

    def scale(self, index, s, cost, weight):
        return self.robust_function.f(s), self.robust_function.f1(s)


class WeightScaling(Contribution):
    """cost_i, weight_i <- w_i cost_i, w_i weight_i"""
    def __init__(self, weights):
        self.weights = [float(w) for w in weights]

    def scale(self, index, s, cost, weight):
        w = self.weights[index]
        return w * cost, w * weight


class SquaredErrorLoss(LocallyQuadraticLoss):
    def __init__(self, function, inputs, targets=None, weights=None,
                 robust_function=None, mean=False):
        """The sum (or mean) of the squared residuals of `function` over
        `inputs`.

        Parameters
        ----------
        function : :class:`lsopt.functions.ModelFunction`
            The function to evaluate. It holds the parameters.
        inputs : list
            The input samples, passed one at a time to
            ``function.set_input``.
        targets : list of numpy.ndarray or None, optional
            If not None, one target column per input, subtracted from the
            output. Default is None.
        weights : list of floats or None, optional
            If not None, one nonnegative weight per input. Default is None.
        robust_function : :class:`lsopt.robust.RobustFunction` or None
            Shapes the squared norm of each residual. Default is None, for
            the identity.
        mean : Bool, optional
            Divide the cost, gradient and Gauss-Newton matrix by the number
            of inputs. Default is False.
        """
        super(SquaredErrorLoss, self).__init__()
        self.function = function
        self.inputs = inputs
        self.targets = targets
        self.weights = weights
        self.robust_function = (IdentityRobustFunction() if robust_function
                                is None else robust_function)
        self.mean = mean
        self._build_chain()
        self._reset_storage()

    def _build_chain(self):
        chain = []
        if self.targets is not None:
            chain.append(TargetSubtraction(self.targets))
        chain.append(RobustScaling(self.robust_function))
        if self.weights is not None:
            chain.append(WeightScaling(self.weights))
        self.chain = chain
        self.cache.invalidate()

    def _reset_storage(self):
        self._f = None
        self._J = None
        self._row_weights = None
        self._dof = None
        self.cache.invalidate()

    # configuration
    def set_function(self, function):
        self.function = function
        self._reset_storage()

    def set_inputs(self, inputs):
        self.inputs = inputs
        self._reset_storage()

    def set_targets(self, targets):
        self.targets = targets
        self._build_chain()

    def set_weights(self, weights):
        self.weights = weights
        self._build_chain()

    def set_robust_function(self, robust_function):
        self.robust_function = robust_function
        self._build_chain()

    def initialize(self):
        """Validate the setup, allocate the residual and Jacobian storage
        and evaluate at the current parameters."""
        self._reset_storage()
        return self.cost

    # parameters
    def get_parameters(self):
        return self.function.get_parameters()

    def set_parameters(self, theta):
        self.function.set_parameters(theta)
        self.cache.invalidate()

    def degrees_of_freedom(self):
        return self.function.degrees_of_freedom()

    def shift(self, delta):
        self.function.shift(delta)
        self.cache.invalidate()

    # results of the last evaluation pass
    @property
    def residuals(self):
        """The stacked residual column; overwritten by the next pass"""
        self.cache.recompute_if_stale(self._compute)
        return self._f

    @property
    def jacobian(self):
        """The stacked Jacobian; overwritten by the next pass"""
        self.cache.recompute_if_stale(self._compute)
        return self._J

    @property
    def row_weights(self):
        """w_i g'(s_i) repeated over the rows of each sample"""
        self.cache.recompute_if_stale(self._compute)
        return self._row_weights

    def _check_setup(self):
        if self.function is None:
            raise ConfigurationError('No function to evaluate.')
        if self.inputs is None or len(self.inputs) == 0:
            raise ConfigurationError('No inputs to evaluate at.')
        for name in ['targets', 'weights']:
            values = getattr(self, name)
            if values is not None and len(values) != len(self.inputs):
                raise ConfigurationError(
                    '{} {} given for {} inputs'.format(
                        len(values), name, len(self.inputs)))

    def _evaluate_sample(self, index, x, dof):
        self.function.set_input(x)
        e = np.asarray(self.function.get_output(), dtype='float')
        check_column(e, name='Output {}'.format(index))
        J = np.asarray(self.function.get_jacobian(), dtype='float')
        if J.shape != (e.shape[0], dof):
            raise ConfigurationError(
                'Jacobian {} has shape {}, expected {}'.format(
                    index, J.shape, (e.shape[0], dof)))
        for contribution in self.chain:
            e = contribution.residual(index, e)
        s = float(np.sum(e * e))
        cost, weight = s, 1.0
        for contribution in self.chain:
            cost, weight = contribution.scale(index, s, cost, weight)
        return e, J, cost, weight

    def _compute(self):
        self._check_setup()
        check_column(self.function.get_parameters(), name='Parameters')
        dof = self.function.degrees_of_freedom()
        if self._dof is not None and dof != self._dof:
            raise ConfigurationError(
                'Degrees of freedom changed from {} to {} during '
                'optimization'.format(self._dof, dof))

        samples = [self._evaluate_sample(i, x, dof)
                   for i, x in enumerate(self.inputs)]
        rows = sum([e.shape[0] for e, _, _, _ in samples])
        if self._f is None:
            CLOG.debug('Allocating {} residuals x {} parameters'.format(
                rows, dof))
            self._f = np.zeros((rows, 1))
            self._J = np.zeros((rows, dof))
            self._row_weights = np.zeros((rows, 1))
            self._dof = dof
        elif rows != self._f.shape[0]:
            raise ConfigurationError(
                'Number of residuals changed from {} to {}'.format(
                    self._f.shape[0], rows))

        cost = 0.0
        start = 0
        for e, J, c, w in samples:
            stop = start + e.shape[0]
            self._f[start:stop] = e
            self._J[start:stop] = J
            self._row_weights[start:stop] = w
            cost += c
            start = stop

        gradient = np.dot(self._J.T, self._row_weights * self._f)
        hessian = np.dot(self._J.T, self._row_weights * self._J)
        if self.mean:
            n = float(len(self.inputs))
            cost /= n
            gradient /= n
            hessian /= n
        return cost, gradient, hessian


class MeanSquaredError(SquaredErrorLoss):
    """1/N sum_i |e_i|^2"""
    def __init__(self, function, inputs):
        super(MeanSquaredError, self).__init__(function, inputs, mean=True)


class SquaredErrorFromTargets(SquaredErrorLoss):
    """sum_i |f_i - y_i|^2"""
    def __init__(self, function, inputs, targets):
        super(SquaredErrorFromTargets, self).__init__(
            function, inputs, targets=targets)


class MeanSquaredErrorFromTargets(SquaredErrorLoss):
    """1/N sum_i |f_i - y_i|^2"""
    def __init__(self, function, inputs, targets):
        super(MeanSquaredErrorFromTargets, self).__init__(
            function, inputs, targets=targets, mean=True)


class WeightedSquaredError(SquaredErrorLoss):
    """sum_i w_i |e_i|^2; not normalized, the weights can carry a 1/N"""
    def __init__(self, function, inputs, weights, targets=None):
        super(WeightedSquaredError, self).__init__(
            function, inputs, targets=targets, weights=weights)


class RobustSquaredError(SquaredErrorLoss):
    """sum_i g(|e_i|^2)"""
    def __init__(self, function, inputs, robust_function, targets=None,
                 weights=None):
        super(RobustSquaredError, self).__init__(
            function, inputs, targets=targets, weights=weights,
            robust_function=robust_function)


class RobustMeanSquaredError(SquaredErrorLoss):
    """1/N sum_i g(|e_i|^2)"""
    def __init__(self, function, inputs, robust_function, targets=None,
                 weights=None):
        super(RobustMeanSquaredError, self).__init__(
            function, inputs, targets=targets, weights=weights,
            robust_function=robust_function, mean=True)


class NormSquaredLoss(LocallyQuadraticLoss):
    def __init__(self, theta):
        """|theta|^2, a quadratic bowl with its minimum at zero.

        Holds its own parameters; the residual is theta itself, so the
        gradient is theta and the Gauss-Newton matrix the identity.
        """
        super(NormSquaredLoss, self).__init__()
        self._theta = np.array(theta, dtype='float').reshape(-1, 1)

    def get_parameters(self):
        return self._theta.copy()

    def set_parameters(self, theta):
        check_column(theta, name='Parameters')
        self._theta = np.array(theta, dtype='float')
        self.cache.invalidate()

    def degrees_of_freedom(self):
        return self._theta.shape[0]

    def shift(self, delta):
        self.set_parameters(self._theta + delta)

    def _compute(self):
        cost = float(np.sum(self._theta * self._theta))
        return cost, self._theta.copy(), np.eye(self._theta.shape[0])
