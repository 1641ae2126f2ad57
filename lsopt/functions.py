"""
The parameterized function contract consumed by the losses.

A function holds its own parameter vector and, after ``set_input(x)``,
evaluates a residual column and its Jacobian with respect to the
parameters at that input. Evaluation is lazy: nothing is computed until
``get_output`` / ``get_jacobian`` is called, and the result reflects the
last ``set_parameters`` / ``set_input`` calls.

Parameter vectors are numpy columns of shape (D, 1); outputs are (m, 1)
columns and Jacobians are (m, D) arrays, with D the degrees of freedom.
"""
import numpy as np

from lsopt.manifolds import EuclideanManifold


class ModelFunction(object):
    """Superclass for a vector-valued function of parameters and an input.

    Subclasses implement ``set_parameters``, ``get_parameters``,
    ``set_input``, ``get_output`` and ``get_jacobian``. Shifting along the
    tangent space is delegated to ``self.manifold``, which is Euclidean
    unless a subclass or instance says otherwise.
    """
    manifold = EuclideanManifold()

    def set_parameters(self, theta):
        raise NotImplementedError('Implement in subclass')

    def get_parameters(self):
        """Returns a copy of the current parameters as a (D, 1) column"""
        raise NotImplementedError('Implement in subclass')

    def set_input(self, x):
        raise NotImplementedError('Implement in subclass')

    def get_output(self):
        """Returns the (m, 1) residual column at the current input"""
        raise NotImplementedError('Implement in subclass')

    def get_jacobian(self):
        """Returns the (m, D) Jacobian of the output w.r.t. the parameters"""
        raise NotImplementedError('Implement in subclass')

    def degrees_of_freedom(self):
        return self.manifold.degrees_of_freedom(self.get_parameters())

    def shift(self, delta):
        """Moves the parameters along the (D, 1) tangent vector `delta`"""
        self.set_parameters(self.manifold.shift(self.get_parameters(), delta))


class ErrorFunction(ModelFunction):
    def __init__(self, manifold=None):
        """A ModelFunction whose parameters live on an explicit manifold.

        Parameters
        ----------
        manifold : :class:`lsopt.manifolds.Manifold` or None, optional
            How the parameters are shifted and how many degrees of freedom
            they have. Default is None, for Euclidean parameters.
        """
        if manifold is not None:
            self.manifold = manifold


class CallableFunction(ErrorFunction):
    def __init__(self, function, jacobian, theta, manifold=None):
        """An ErrorFunction built from two plain callables.

        Parameters
        ----------
        function : callable
            ``function(x, theta)`` returning the residual at input `x` as
            something reshapeable to an (m, 1) column.
        jacobian : callable
            ``jacobian(x, theta)`` returning the (m, D) Jacobian.
        theta : array-like
            The initial parameters; stored as a column.
        manifold : :class:`lsopt.manifolds.Manifold` or None, optional
            Passed to :class:`ErrorFunction`.
        """
        self.function = function
        self.jacobian = jacobian
        self._theta = np.array(theta, dtype='float').reshape(-1, 1)
        self._x = None
        super(CallableFunction, self).__init__(manifold=manifold)

    def set_parameters(self, theta):
        self._theta = np.array(theta, dtype='float')

    def get_parameters(self):
        return self._theta.copy()

    def set_input(self, x):
        self._x = x

    def get_output(self):
        return np.reshape(self.function(self._x, self._theta), (-1, 1))

    def get_jacobian(self):
        return np.atleast_2d(self.jacobian(self._x, self._theta))
