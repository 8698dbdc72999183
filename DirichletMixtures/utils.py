# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

import numpy as np

from scipy.linalg import cholesky, LinAlgError

from .exceptions import InvariantViolation


def _check_positive_scalar(x, name):
    """Check if a value x is a positive scalar."""

    if not (np.isscalar(x) and x > 0):
        raise ValueError("The parameter '%s' should be a positive scalar, "
                         "but got %s" % (name, x))


def _check_shape(param, param_shape, name):
    """Validate the shape of the input parameter 'param'.

    Parameters
    ----------
    param : array

    param_shape : tuple

    name : string
    """
    param = np.array(param)
    if param.shape != param_shape:
        raise ValueError("The parameter '%s' should have the shape of %s, "
                         "but got %s" % (name, param_shape, param.shape))


def _check_scale_matrix(scale, name):
    """Check that a scale matrix is symmetric positive-definite and return
    its lower Cholesky factor.

    Parameters
    ----------
    scale : array of shape (n_features, n_features)

    name : string

    Returns
    -------
    scale_chol : array of shape (n_features, n_features)
    """
    if not np.allclose(scale, scale.T):
        raise ValueError("The parameter '%s' should be symmetric." % name)
    try:
        return cholesky(scale, lower=True)
    except LinAlgError:
        raise ValueError("The parameter '%s' should be positive-definite."
                         % name)


def _relative_close(a, b, epsilon):
    """Elementwise relative comparison of two arrays (or scalars).

    Two values are close when they are exactly equal or when their distance
    is below ``epsilon`` times the smallest of their magnitudes. Zero is
    therefore only close to zero and values of opposite sign are never close.
    """
    with np.errstate(invalid='ignore'):
        return (a == b) | (np.abs(a - b) <
                           epsilon * np.minimum(np.abs(a), np.abs(b)))


def approx_equal(a, b, epsilon=1e-6):
    """Check if two numbers, arrays, or tuples thereof are equal to within
    relative error `epsilon`.

    Parameters
    ----------
    a, b : float, array-like or tuple of array-like
        Values to compare. Tuples are compared entry by entry, which is how
        multi-part cluster parameters (e.g. a mean and a precision matrix)
        are matched.

    epsilon : float, default=1e-6
        Relative tolerance.

    Returns
    -------
    equal : bool

    Raises
    ------
    InvariantViolation
        If the two values do not hold the same number of elements.
    """
    if isinstance(a, tuple) or isinstance(b, tuple):
        if not (isinstance(a, tuple) and isinstance(b, tuple)) \
                or len(a) != len(b):
            raise InvariantViolation(
                "Cannot compare parameters of different lengths: %r and %r"
                % (a, b))
        for a_i, b_i in zip(a, b):
            if not approx_equal(a_i, b_i, epsilon):
                return False
        return True

    a = np.ravel(np.asarray(a, dtype=float))
    b = np.ravel(np.asarray(b, dtype=float))
    if a.size != b.size:
        raise InvariantViolation(
            "Cannot compare arrays of different sizes: %s and %s"
            % (a.size, b.size))
    return bool(np.all(_relative_close(a, b, epsilon)))
