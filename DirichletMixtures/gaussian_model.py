# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

import logging

import numpy as np

from scipy.stats import (multivariate_normal, invwishart)
from scipy.special import multigammaln

from sklearn.utils import check_array, check_random_state

from .base import ConjugateModel
from .utils import (_check_positive_scalar, _check_shape,
                    _check_scale_matrix)


logger = logging.getLogger(__name__)

_DEFAULT_N_FEATURES = 2
_DEFAULT_SCALING_PRIOR = 1e-8


def _niw_posterior_params(X,
                          loc_prior,
                          scaling_prior,
                          scale_prior,
                          degrees_of_freedom_prior):
    """Normal-inverse-Wishart posterior parameters estimation.

    Parameters
    ----------

    X : array of shape (n_observations, n_features)
        Observations modelled by a gaussian distribution.

    loc_prior :  array of shape (n_features, )
        Location hyper parameter.

    scaling_prior :  float
        Scaling hyper parameter.

    scale_prior : array of shape (n_features, n_features)
        Scale hyper parameter.

    degrees_of_freedom_prior : float
        Degree of freedom hyper parameter. Must be superior to n_features - 1.

    Returns
    -------

    loc : array of shape (n_features, )

    scaling : float

    scale : array of shape (n_features, n_features)

    degree_of_freedom : float
    """
    n = len(X)

    # posterior degrees of freedom
    degrees_of_freedom = degrees_of_freedom_prior + n

    # posterior scaling
    scaling = scaling_prior + n

    # posterior location
    mu = X.mean(axis=0)
    loc = (scaling_prior * loc_prior + n * mu) / scaling

    # posterior scale
    X_centered = X - mu
    scatter = X_centered.T @ X_centered
    mu_centered = mu - loc_prior
    shrinkage = (scaling_prior * n / scaling) * \
        np.outer(mu_centered, mu_centered)
    scale = scale_prior + scatter + shrinkage

    return loc, scaling, scale, degrees_of_freedom


def _niw_rvs(loc, scaling, scale, degrees_of_freedom, random_state=None):
    """Sample from the Normal-inverse-Wishart distribution.

    Parameters
    ----------

    loc : array of shape (n_features, )
        Location parameter.

    scaling : float
        Scaling parameter.

    scale : array of shape (n_features, n_features)
        Scale parameter.

    degrees_of_freedom : float
        Degree of freedom parameter. Must be superior to n_features - 1.

    random_state : RandomState instance

    Returns
    -------

    loc : array of shape (n_features, )

    cov : array of shape (n_features, n_features)
    """
    # scipy squeezes the one dimensional draws to scalars
    cov = invwishart.\
        rvs(df=degrees_of_freedom, scale=scale, random_state=random_state)
    cov = np.atleast_2d(cov)
    loc = multivariate_normal.\
        rvs(mean=loc, cov=cov / scaling, random_state=random_state)
    loc = np.atleast_1d(loc)

    return loc, cov


class MultivariateNormalModel(ConjugateModel):
    """Multivariate gaussian component with a Normal-inverse-Wishart prior.

    The cluster parameters are a tuple ``(mean, precision)``. The covariance
    of a cluster follows an inverse-Wishart distribution of scale
    `scale_prior` and `degrees_of_freedom_prior` degrees of freedom, its
    mean a gaussian centered on `loc_prior` with covariance scaled by
    ``1 / scaling_prior``.

    Parameters
    ----------

    loc_prior : array of shape (n_features,), default=None.
        Location hyper parameter. If it is None, it is set to zero.

    scaling_prior : float, default=1e-8.
        Scaling hyper parameter of the location distribution. The default
        gives an almost flat prior on the location.

    scale_prior : array of shape (n_features, n_features), default=None.
        Scale hyper parameter of the inverse-Wishart distribution. If it is
        None, it is set to the identity.

    degrees_of_freedom_prior : float, default=None.
        Degrees of freedom of the inverse-Wishart distribution. Must be
        superior to n_features - 1. If it is None, it's set to `n_features`.

    n_features : int, default=None.
        Dimension of the observations. Only needed when neither `loc_prior`
        nor `scale_prior` is given, in which case it defaults to 2.

    Attributes
    ----------

    n_features_ : int

    loc_prior_ : array of shape (n_features,)

    scaling_prior_ : float

    scale_prior_ : array of shape (n_features, n_features)

    scale_prior_chol_ : array of shape (n_features, n_features)
        Lower Cholesky factor of `scale_prior_`.

    degrees_of_freedom_prior_ : float

    Examples
    --------
    >>> model = MultivariateNormalModel(n_features=3)
    >>> model.parameter_names()
    ('Mean', 'Covariance Matrix')

    References
    ----------

    .. [1] Murphy, K. P. "Conjugate Bayesian analysis of the Gaussian
           distribution", Technical report (2007), section 9.
    """

    def __init__(self, loc_prior=None, scaling_prior=_DEFAULT_SCALING_PRIOR,
                 scale_prior=None, degrees_of_freedom_prior=None,
                 n_features=None):
        self.loc_prior = loc_prior
        self.scaling_prior = scaling_prior
        self.scale_prior = scale_prior
        self.degrees_of_freedom_prior = degrees_of_freedom_prior
        self.n_features = n_features

        self._check_parameters()

    @classmethod
    def from_data(cls, X):
        """Empirical Bayes initialization of the prior.

        The location hyper parameter is the sample mean of `X`, the scale
        hyper parameter the inverse of the sample covariance scaled by the
        dimension, and the degrees of freedom equal the dimension.

        Parameters
        ----------
        X : array of shape (n_observations, n_features)

        Returns
        -------
        model : MultivariateNormalModel
        """
        X = check_array(X, dtype=[np.float64, np.float32])
        n, dim = X.shape

        loc = X.mean(axis=0)
        X_centered = X - loc
        scatter = X_centered.T @ X_centered
        if np.linalg.matrix_rank(scatter) < dim:
            raise ValueError("The sample covariance of X is singular, the "
                             "scale hyper parameter cannot be estimated.")
        scale = np.linalg.inv(scatter / n / dim)
        scale = (scale + scale.T) / 2
        logger.debug("Empirical prior estimated from %d observations in "
                     "dimension %d", n, dim)

        return cls(loc_prior=loc, scaling_prior=_DEFAULT_SCALING_PRIOR,
                   scale_prior=scale, degrees_of_freedom_prior=float(dim))

    def _check_parameters(self):
        """Check that the parameters are well defined."""

        self._check_n_features()
        self._check_loc_prior_parameter()
        self._check_scaling_prior_parameter()
        self._check_scale_prior_parameter()
        self._check_degrees_of_freedom_prior()

    def _check_n_features(self):
        """Infer the dimension of the model from its hyper parameters."""

        if self.loc_prior is not None:
            dim = np.size(self.loc_prior)
        elif self.scale_prior is not None:
            dim = np.shape(self.scale_prior)[0]
        elif self.n_features is not None:
            dim = self.n_features
        else:
            dim = _DEFAULT_N_FEATURES

        if self.n_features is not None and self.n_features != dim:
            raise ValueError("The parameter 'n_features' is %s but the hyper "
                             "parameters have dimension %s"
                             % (self.n_features, dim))
        _check_positive_scalar(dim, 'n_features')
        if int(dim) != dim:
            raise ValueError("The parameter 'n_features' should be an "
                             "integer, but got %s" % dim)
        self.n_features_ = int(dim)

    def _check_loc_prior_parameter(self):
        """Check the location hyper parameter of the normal-inverse-
        Whishart prior."""

        dim = self.n_features_
        if self.loc_prior is None:
            self.loc_prior_ = np.zeros(dim)
        else:
            self.loc_prior_ = check_array(np.atleast_1d(self.loc_prior),
                                          dtype=[np.float64, np.float32],
                                          ensure_2d=False)
            _check_shape(self.loc_prior_, (dim,), 'loc_prior')

    def _check_scaling_prior_parameter(self):
        """Check the scaling hyper parameter of the normal-inverse-
        Whishart prior."""

        _check_positive_scalar(self.scaling_prior, 'scaling_prior')
        self.scaling_prior_ = float(self.scaling_prior)

    def _check_scale_prior_parameter(self):
        """Check the scale hyper parameter of the normal-inverse-
        Whishart prior."""

        dim = self.n_features_
        if self.scale_prior is None:
            self.scale_prior_ = np.eye(dim)
        else:
            self.scale_prior_ = check_array(np.atleast_2d(self.scale_prior),
                                            dtype=[np.float64, np.float32])
            _check_shape(self.scale_prior_, (dim, dim), 'scale_prior')
        self.scale_prior_chol_ = \
            _check_scale_matrix(self.scale_prior_, 'scale_prior')

    def _check_degrees_of_freedom_prior(self):
        """Check the hyper parameter degrees of freedom of the inverse-Wishart
        prior on the scale distribution."""

        dim = self.n_features_
        if self.degrees_of_freedom_prior is None:
            self.degrees_of_freedom_prior_ = float(dim)
        else:
            _check_positive_scalar(self.degrees_of_freedom_prior,
                                   'degrees_of_freedom_prior')
            if not self.degrees_of_freedom_prior > dim - 1:
                raise ValueError("The parameter 'degrees_of_freedom_prior' "
                                 "should be superior to %s, but got %s"
                                 % (dim - 1, self.degrees_of_freedom_prior))
            self.degrees_of_freedom_prior_ = \
                float(self.degrees_of_freedom_prior)

    def _check_observations(self, X):
        """Coerce observations to an array of shape
        (n_observations, n_features).

        A one dimensional array is a single observation, unless the model is
        univariate in which case it holds one value per observation.
        """
        X = np.asarray(X, dtype=float)
        if X.ndim == 0:
            X = X.reshape(1, 1)
        elif X.ndim == 1:
            X = X.reshape(-1, 1) if self.n_features_ == 1 else X[np.newaxis]
        X = check_array(X, dtype=[np.float64, np.float32])
        if X.shape[1] != self.n_features_:
            raise ValueError("Expected observations with %d features, but "
                             "got %d" % (self.n_features_, X.shape[1]))
        return X

    def _check_observation(self, y):
        """Coerce a single observation to an array of shape (n_features, )."""

        X = self._check_observations(y)
        if len(X) != 1:
            raise ValueError("Expected a single observation, but got %d"
                             % len(X))
        return X[0]

    def pdf_likelihood(self, y, phi):
        """Gaussian density of `y` given ``phi = (mean, precision)``."""
        y = self._check_observation(y)
        mean, precision = phi
        return multivariate_normal.pdf(y, mean=np.atleast_1d(mean),
                                       cov=np.linalg.inv(precision))

    def sample_posterior(self, X, random_state=None):
        """Sample ``(mean, precision)`` from the Normal-inverse-Wishart
        posterior given the observations `X` of a cluster.

        Parameters
        ----------
        X : array of shape (n_observations, n_features) or (n_features, )

        random_state : int, RandomState instance or None, default=None

        Returns
        -------
        mean : array of shape (n_features, )

        precision : array of shape (n_features, n_features)
        """
        X = self._check_observations(X)
        random_state = check_random_state(random_state)

        niw_pp = _niw_posterior_params(X,
                                       self.loc_prior_,
                                       self.scaling_prior_,
                                       self.scale_prior_,
                                       self.degrees_of_freedom_prior_)
        mean, cov = _niw_rvs(*niw_pp, random_state=random_state)
        return mean, np.linalg.inv(cov)

    def sample_prior(self, random_state=None):
        """Sample ``(mean, precision)`` from the Normal-inverse-Wishart
        prior."""
        random_state = check_random_state(random_state)
        mean, cov = _niw_rvs(self.loc_prior_,
                             self.scaling_prior_,
                             self.scale_prior_,
                             self.degrees_of_freedom_prior_,
                             random_state=random_state)
        return mean, np.linalg.inv(cov)

    def log_marginal_likelihood(self, y):
        """Log of the prior predictive density of a single observation.

        The Normal-inverse-Wishart prior is updated with `y` alone and the
        density is the ratio of the normalizing constants of the prior and
        of the updated distribution.

        Parameters
        ----------
        y : array of shape (n_features, )

        Returns
        -------
        log_density : float
        """
        y = self._check_observation(y)
        dim = self.n_features_
        loc0 = self.loc_prior_
        scaling0 = self.scaling_prior_
        nu0 = self.degrees_of_freedom_prior_
        chol0 = self.scale_prior_chol_

        scaling = scaling0 + 1
        nu = nu0 + 1

        scale0 = chol0 @ chol0.T
        z = y - loc0
        scale = scale0 + scaling0 / scaling * np.outer(z, z)

        logdet0 = 2 * np.log(np.diag(chol0)).sum()
        _, logdet = np.linalg.slogdet(scale)

        return (-dim / 2 * np.log(np.pi)
                + multigammaln(nu / 2, dim)
                - multigammaln(nu0 / 2, dim)
                + nu0 / 2 * logdet0
                - nu / 2 * logdet
                + dim / 2 * (np.log(scaling0) - np.log(scaling)))

    def standard_form(self, phi):
        """Convert ``(mean, precision)`` to ``(mean, covariance)``."""
        mean, precision = phi
        return mean, np.linalg.inv(precision)

    def parameter_names(self):
        return ("Mean", "Covariance Matrix")
