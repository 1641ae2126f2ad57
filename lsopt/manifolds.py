"""
Shift strategies for parameter vectors.

An optimization step produces an increment ``delta`` in the tangent space of
the parameters. How that increment is applied depends on where the
parameters live: for ordinary parameters it is a plain addition, for a unit
quaternion it is a rotation composed on the right. Functions hold one of
these objects and delegate ``shift`` / ``degrees_of_freedom`` to it, so the
loss and the algorithms never need to know which one is in use.
"""
import numpy as np

from lsopt.exceptions import ConfigurationError


def _check_delta(delta, dof):
    delta = np.asarray(delta, dtype='float')
    if delta.shape != (dof, 1):
        raise ConfigurationError(
            'Shift must be a ({0}, 1) column; got shape {1}.'.format(
                dof, delta.shape))
    return delta


class Manifold(object):
    """Superclass for the space a parameter vector lives in."""
    def degrees_of_freedom(self, theta):
        """Dimension of the tangent space at `theta`."""
        raise NotImplementedError('Implement in subclass')

    def shift(self, theta, delta):
        """Returns `theta` moved along the tangent vector `delta`."""
        raise NotImplementedError('Implement in subclass')


class EuclideanManifold(Manifold):
    """Flat parameters: theta <- theta + delta."""
    def degrees_of_freedom(self, theta):
        return np.shape(theta)[0]

    def shift(self, theta, delta):
        delta = _check_delta(delta, self.degrees_of_freedom(theta))
        return theta + delta


class UnitQuaternionManifold(Manifold):
    """Unit quaternions ``[w, x, y, z]`` stored as a (4, 1) column.

    The tangent space is 3-dimensional. A shift composes the exponential of
    half the rotation vector on the right,

        q <- q * exp(delta / 2),

    and renormalizes, so the result stays on the unit sphere.
    """
    def degrees_of_freedom(self, theta):
        return 3

    def shift(self, theta, delta):
        delta = _check_delta(delta, 3).ravel()
        q = np.asarray(theta, dtype='float').ravel()
        if q.size != 4:
            raise ConfigurationError('A unit quaternion has 4 entries.')
        dq = exponential(0.5 * delta)
        out = multiply(q, dq)
        return (out / np.linalg.norm(out)).reshape(4, 1)


def exponential(v):
    """Quaternion exponential of the pure quaternion ``[0, v]``."""
    angle = np.linalg.norm(v)
    if angle < 1e-12:
        # first order; the renormalization in shift absorbs the error
        return np.append(1.0, v)
    return np.append(np.cos(angle), np.sin(angle) * v / angle)


def multiply(p, q):
    """Hamilton product of two quaternions in ``[w, x, y, z]`` order."""
    pw, px, py, pz = p
    qw, qx, qy, qz = q
    return np.array([
        pw*qw - px*qx - py*qy - pz*qz,
        pw*qx + px*qw + py*qz - pz*qy,
        pw*qy - px*qz + py*qw + pz*qx,
        pw*qz + px*qy - py*qx + pz*qw,
    ])
