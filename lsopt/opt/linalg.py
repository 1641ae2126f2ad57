import numpy as np
from scipy.linalg import cho_factor, cho_solve

from lsopt.logger import log
from lsopt.exceptions import ConfigurationError, NotPositiveDefiniteError
CLOG = log.getChild('linalg')

NOT_POSITIVE_DEFINITE = ('Cholesky decomposition applied to non positive '
                         'definite matrix.')


class CholeskySolver(object):
    def __init__(self, remedy=''):
        """Solves the damped normal equations for a Gauss-Newton step,

            delta = -(damping * I + hessian)^{-1} gradient

        by a Cholesky factorization and forward / back substitution.

        The solver owns a (D, D) scratch buffer, sized by ``initialize``,
        which is overwritten with the damped matrix and then factorized in
        place. The gradient and Gauss-Newton matrix passed to ``solve`` are
        only read.

        Parameters
        ----------
        remedy : string, optional
            Appended to the error message when the factorization fails, to
            tell the caller what to try instead.
        """
        self.remedy = remedy
        self.buffer = None

    def initialize(self, dof):
        self.buffer = np.zeros((dof, dof), dtype='float', order='F')

    def solve(self, gradient, hessian, damping=0.0):
        """Returns the (D, 1) step for `gradient` and `hessian`.

        Raises
        ------
        NotPositiveDefiniteError
            If the damped matrix is not positive definite, or contains
            non-finite entries.
        """
        if damping < 0:
            raise ConfigurationError(
                'Damping must be nonnegative, got {}'.format(damping))
        if self.buffer is None:
            self.initialize(np.shape(hessian)[0])
        if self.buffer.shape != np.shape(hessian):
            raise ConfigurationError(
                'Gauss-Newton matrix has shape {}, solver was sized for '
                '{}'.format(np.shape(hessian), self.buffer.shape))
        self.buffer[...] = hessian
        self.buffer[np.diag_indices_from(self.buffer)] += damping
        try:
            factor = cho_factor(self.buffer, overwrite_a=True)
        except (np.linalg.LinAlgError, ValueError) as e:
            message = ' '.join([NOT_POSITIVE_DEFINITE, self.remedy]).strip()
            CLOG.error(message)
            raise NotPositiveDefiniteError(message) from e
        return -cho_solve(factor, gradient)
