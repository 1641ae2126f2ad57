"""
Concrete model functions of a scalar (or column) input, ready to be fitted
with :mod:`lsopt.opt.algorithms`. All of them are Euclidean.
"""
import numpy as np

from lsopt.functions import ErrorFunction


def _column(theta):
    return np.array(theta, dtype='float').reshape(-1, 1)


class _ParameterHolder(ErrorFunction):
    def __init__(self, theta):
        self._theta = _column(theta)
        self.x = None
        super(_ParameterHolder, self).__init__()

    def set_parameters(self, theta):
        self._theta = np.array(theta, dtype='float')

    def get_parameters(self):
        return self._theta.copy()

    def set_input(self, x):
        self.x = x


class ProportionalFunction(_ParameterHolder):
    """y = k * x, with the single parameter ``[k]``.

    The input may be a scalar or a column, giving an output of the same
    number of rows.
    """
    def __init__(self, k=1.0):
        super(ProportionalFunction, self).__init__([k])

    def get_output(self):
        return self._theta[0, 0] * _column(self.x)

    def get_jacobian(self):
        return _column(self.x)


class LineFunction(_ParameterHolder):
    """y = m * x + q, with parameters ``[m, q]``"""
    def __init__(self, m=1.0, q=0.0):
        super(LineFunction, self).__init__([m, q])

    def get_output(self):
        m, q = self._theta[:, 0]
        return np.array([[m * self.x + q]], dtype='float')

    def get_jacobian(self):
        return np.array([[self.x, 1.0]], dtype='float')


class PolynomialFunction(_ParameterHolder):
    def __init__(self, coefficients):
        """y = sum_i c_i x^i

        Parameters
        ----------
        coefficients : list-like
            The initial coefficients, constant term first. Its length sets
            the degree (plus one) and the degrees of freedom.
        """
        super(PolynomialFunction, self).__init__(coefficients)

    def _powers(self):
        return float(self.x) ** np.arange(self._theta.shape[0])

    def get_output(self):
        return np.array([[np.dot(self._powers(), self._theta[:, 0])]])

    def get_jacobian(self):
        return self._powers().reshape(1, -1)


class GaussianFunction(_ParameterHolder):
    def __init__(self, a=1.0, b=0.0, c=1.0):
        """y = a * exp(-(x - b)^2 / (2 c^2)), with parameters ``[a, b, c]``.

        The output and Jacobian share the exponential, so both are computed
        together the first time either is asked for and reused until the
        parameters or the input change.
        """
        super(GaussianFunction, self).__init__([a, b, c])
        self._dirty = True
        self._output = np.zeros((1, 1))
        self._jacobian = np.zeros((1, 3))

    def set_parameters(self, theta):
        super(GaussianFunction, self).set_parameters(theta)
        self._dirty = True

    def set_input(self, x):
        super(GaussianFunction, self).set_input(x)
        self._dirty = True

    def _evaluate(self):
        if not self._dirty:
            return
        a, b, c = self._theta[:, 0]
        diff = self.x - b
        dfda = np.exp(-diff * diff / (2 * c * c))
        dfdb = a * dfda * diff / (c * c)
        self._output[0, 0] = a * dfda
        self._jacobian[0, :] = [dfda, dfdb, dfdb * diff / c]
        self._dirty = False

    def get_output(self):
        self._evaluate()
        return self._output.copy()

    def get_jacobian(self):
        self._evaluate()
        return self._jacobian.copy()
