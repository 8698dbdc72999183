# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

"""Base classes for the component models of a Dirichlet mixture."""

from abc import ABCMeta, abstractmethod

import numpy as np

from sklearn.base import BaseEstimator


class AbstractMixtureModel(BaseEstimator, metaclass=ABCMeta):
    """Base class for the component model of a Dirichlet mixture.

    A component model owns the hyper parameters of the base measure of the
    Dirichlet process and nothing else; it is shared between chains and is
    never mutated by the sampler.

    A cluster parameter ``phi`` is a tuple whose layout depends on the model.
    """

    def _check_parameters(self):
        """Validate the hyper parameters and derive the fitted attributes."""

    def set_params(self, **params):
        """Set the hyper parameters of the model and validate them again.

        The previous hyper parameters are restored when the new ones are
        invalid.

        Returns
        -------
        self : AbstractMixtureModel
        """
        previous = self.get_params(deep=False)
        super().set_params(**params)
        try:
            self._check_parameters()
        except ValueError:
            super().set_params(**previous)
            self._check_parameters()
            raise
        return self

    @abstractmethod
    def pdf_likelihood(self, y, phi):
        """Density of an observation under explicit cluster parameters.

        Parameters
        ----------
        y : array of shape (n_features, )

        phi : tuple
            Cluster parameters.

        Returns
        -------
        density : float
        """

    @abstractmethod
    def standard_form(self, phi):
        """Convert cluster parameters to their user-facing form.

        Parameters
        ----------
        phi : tuple
            Cluster parameters, as stored in the sampler state.

        Returns
        -------
        phi : tuple
            Cluster parameters, in the order given by `parameter_names`.
        """

    @abstractmethod
    def parameter_names(self):
        """Display names of the entries returned by `standard_form`."""


class ConjugateModel(AbstractMixtureModel):
    """Base class for component models with a conjugate prior.

    The posterior of the cluster parameters given the observations of a
    cluster is available in closed form, as is the prior predictive density
    of a single observation. The latter gives the weight of opening a new
    cluster in a Chinese restaurant process step.
    """

    @abstractmethod
    def sample_posterior(self, X, random_state=None):
        """Sample cluster parameters from the posterior given observations.

        Parameters
        ----------
        X : array of shape (n_observations, n_features)
            Observations of one cluster.

        random_state : int, RandomState instance or None, default=None

        Returns
        -------
        phi : tuple
        """

    @abstractmethod
    def sample_prior(self, random_state=None):
        """Sample cluster parameters from the prior."""

    @abstractmethod
    def log_marginal_likelihood(self, y):
        """Logarithm of the prior predictive density of one observation.

        Parameters
        ----------
        y : array of shape (n_features, )

        Returns
        -------
        log_density : float
        """

    def marginal_likelihood(self, y):
        """Prior predictive density of one observation, the cluster
        parameters being integrated out.

        Parameters
        ----------
        y : array of shape (n_features, )

        Returns
        -------
        density : float
        """
        return np.exp(self.log_marginal_likelihood(y))
