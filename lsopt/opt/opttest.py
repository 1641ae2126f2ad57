"""
Reference problems and test doubles for checking curve-fitting behavior.

The classic test functions below are written as residuals with analytic
Jacobians (cost = sum(residuals**2) against the listed data); most of them
are taken from wikipedia:
https://en.wikipedia.org/wiki/Test_functions_for_optimization
"""
import numpy as np

from lsopt.functions import ErrorFunction
from lsopt.manifolds import UnitQuaternionManifold
from lsopt.opt.loss import SquaredErrorFromTargets


def simple_sphere(xy):
    """A simple sphere: the residuals are the parameters themselves.
    A linear, uncoupled model."""
    return np.array(xy, dtype='float')


def simple_sphere_jacobian(xy):
    return np.eye(len(xy))


def booth(xy):
    """The Booth's function. With data [7, 5] it has a single global
    minimum at (1, 3). A coupled linear model."""
    x, y = xy
    return np.array([x + 2*y, y + 2*x])


def booth_jacobian(xy):
    return np.array([[1., 2.], [2., 1.]])


def rosenbrock(xy, A=10):
    """The rosenbrock banana function. With data [1, 0] it has a global
    minimum at (1, 1). Quadratic in x and linear in y, so there is only
    parameter-effect curvature."""
    x, y = xy
    return np.array([x, A*(y - x*x)])


def rosenbrock_jacobian(xy, A=10):
    x, y = xy
    return np.array([[1., 0.], [-2*A*x, A]])


def beale(xy):
    """The Beale function. With data [1.5, 2.25, 2.625] it has a global
    minimum at (3, 0.5). Linear in x and quartic in y, with a data space
    (3) larger than its parameter space (2)."""
    x, y = xy
    return np.array([x - x*y, x - x*y**2, x - x*y**3])


def beale_jacobian(xy):
    x, y = xy
    return np.array([[1 - y, -x],
                     [1 - y**2, -2*x*y],
                     [1 - y**3, -3*x*y**2]])


def himmelblau(xy):
    """Himmelblau's function. With data [11, 7] it has four minima, one
    at (3, 2). Quadratic in both x and y."""
    x, y = xy
    return np.array([x*x + y, y*y + x])


def himmelblau_jacobian(xy):
    x, y = xy
    return np.array([[2*x, 1.], [1., 2*y]])


ALL_FUNCTIONS = {
    'simple_sphere': {
        'function': simple_sphere,
        'jacobian': simple_sphere_jacobian,
        'data': np.array([0., 0.]),
        'true-params': np.array([0., 0.]),
        },

    'booth': {
        'function': booth,
        'jacobian': booth_jacobian,
        'data': np.array([7., 5.]),
        'true-params': np.array([1., 3.]),
        },

    'beale': {
        'function': beale,
        'jacobian': beale_jacobian,
        'data': np.array([1.5, 2.25, 2.625]),
        'true-params': np.array([3., 0.5]),
        },

    'rosenbrock': {
        'function': rosenbrock,
        'jacobian': rosenbrock_jacobian,
        'data': np.array([1.0, 0.]),
        'true-params': np.array([1., 1.]),
        },

    'himmelblau': {
        'function': himmelblau,
        'jacobian': himmelblau_jacobian,
        'data': np.array([11., 7.]),
        'true-params': np.array([3.0, 2.0]),  # one of 4
        },
    }


LINEAR_FUNCTIONS = {k: ALL_FUNCTIONS[k] for k in ['simple_sphere', 'booth']}
NONLINEAR_FUNCTIONS = {k: ALL_FUNCTIONS[k]
                       for k in ['beale', 'rosenbrock', 'himmelblau']}


class ReferenceFunction(ErrorFunction):
    def __init__(self, function, jacobian, theta):
        """One of the functions above as an ErrorFunction of the parameters
        only; the input is ignored."""
        self.function = function
        self.jacobian = jacobian
        self._theta = np.array(theta, dtype='float').reshape(-1, 1)
        super(ReferenceFunction, self).__init__()

    def set_parameters(self, theta):
        self._theta = np.array(theta, dtype='float')

    def get_parameters(self):
        return self._theta.copy()

    def set_input(self, x):
        pass

    def get_output(self):
        return self.function(self._theta[:, 0]).reshape(-1, 1)

    def get_jacobian(self):
        return self.jacobian(self._theta[:, 0])


def make_reference_loss(name, theta):
    """The squared distance of problem `name` from its data, starting at
    `theta`, as a single-sample loss."""
    problem = ALL_FUNCTIONS[name]
    function = ReferenceFunction(problem['function'], problem['jacobian'],
                                 theta)
    return SquaredErrorFromTargets(function, [None],
                                   [problem['data'].reshape(-1, 1)])


class CountingFunction(ErrorFunction):
    def __init__(self, function):
        """Wraps a function and counts how often it is evaluated"""
        self.function = function
        self.output_calls = 0
        self.jacobian_calls = 0
        super(CountingFunction, self).__init__(manifold=function.manifold)

    def set_parameters(self, theta):
        self.function.set_parameters(theta)

    def get_parameters(self):
        return self.function.get_parameters()

    def set_input(self, x):
        self.function.set_input(x)

    def get_output(self):
        self.output_calls += 1
        return self.function.get_output()

    def get_jacobian(self):
        self.jacobian_calls += 1
        return self.function.get_jacobian()


class ConstantZeroFunction(ErrorFunction):
    """Always zero with a zero Jacobian, whatever the parameters; the
    Gauss-Newton matrix is singular."""
    def __init__(self, theta):
        self._theta = np.array(theta, dtype='float').reshape(-1, 1)
        super(ConstantZeroFunction, self).__init__()

    def set_parameters(self, theta):
        self._theta = np.array(theta, dtype='float')

    def get_parameters(self):
        return self._theta.copy()

    def set_input(self, x):
        pass

    def get_output(self):
        return np.zeros((1, 1))

    def get_jacobian(self):
        return np.zeros((1, self._theta.shape[0]))


class LinearFunction(ErrorFunction):
    """f(A) = A theta for a design matrix input A of shape (m, D)"""
    def __init__(self, theta):
        self._theta = np.array(theta, dtype='float').reshape(-1, 1)
        self.A = None
        super(LinearFunction, self).__init__()

    def set_parameters(self, theta):
        self._theta = np.array(theta, dtype='float')

    def get_parameters(self):
        return self._theta.copy()

    def set_input(self, A):
        self.A = np.atleast_2d(A)

    def get_output(self):
        return np.dot(self.A, self._theta)

    def get_jacobian(self):
        return self.A.copy()


def rotation_matrix(q):
    """The 3x3 rotation of the unit quaternion ``[w, x, y, z]``"""
    w, x, y, z = np.ravel(q)
    return np.array([
        [1 - 2*(y*y + z*z), 2*(x*y - w*z), 2*(x*z + w*y)],
        [2*(x*y + w*z), 1 - 2*(x*x + z*z), 2*(y*z - w*x)],
        [2*(x*z - w*y), 2*(y*z + w*x), 1 - 2*(x*x + y*y)],
    ])


def skew(v):
    """The cross-product matrix, skew(v) u = v x u"""
    x, y, z = np.ravel(v)
    return np.array([[0., -z, y], [z, 0., -x], [-y, x, 0.]])


class RotationFunction(ErrorFunction):
    def __init__(self, q):
        """f(v) = R(q) v for 3-vector inputs v, with the unit quaternion q
        as parameters. The Jacobian is with respect to a rotation vector
        applied on the right, R(q exp(delta/2)) ~ R(q) (I + skew(delta)),
        which gives -R(q) skew(v)."""
        self._q = np.array(q, dtype='float').reshape(4, 1)
        self.v = None
        super(RotationFunction, self).__init__(
            manifold=UnitQuaternionManifold())

    def set_parameters(self, q):
        self._q = np.array(q, dtype='float')

    def get_parameters(self):
        return self._q.copy()

    def set_input(self, v):
        self.v = np.reshape(v, (3, 1))

    def get_output(self):
        return np.dot(rotation_matrix(self._q), self.v)

    def get_jacobian(self):
        return -np.dot(rotation_matrix(self._q), skew(self.v))


def linear_least_squares(inputs, targets, weights=None):
    """The closed-form minimizer of sum_i w_i |A_i theta - y_i|^2"""
    if weights is None:
        weights = np.ones(len(inputs))
    ata = sum([w * np.dot(A.T, A) for A, w in zip(inputs, weights)])
    aty = sum([w * np.dot(A.T, y)
               for A, y, w in zip(inputs, targets, weights)])
    return np.linalg.solve(ata, aty)


def make_linear_problem(nsamples=10, nrows=3, dof=4, noise=0.1):
    """Random design matrices and noisy targets for a LinearFunction.

    Returns
    -------
    inputs, targets : lists of numpy.ndarray
    true_theta : numpy.ndarray
        The (dof, 1) parameters the targets were generated from.
    """
    true_theta = np.random.randn(dof, 1)
    inputs = [np.random.randn(nrows, dof) for _ in range(nsamples)]
    targets = [np.dot(A, true_theta) + noise * np.random.randn(nrows, 1)
               for A in inputs]
    return inputs, targets, true_theta
