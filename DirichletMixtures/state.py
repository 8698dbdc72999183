# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

"""Bookkeeping of the clusters visited by a Gibbs sampling chain."""

import logging

import numpy as np

from sklearn.utils import check_array, check_random_state

from .exceptions import InvariantViolation
from .utils import approx_equal


logger = logging.getLogger(__name__)


class ClusterState:
    """Current state of a Dirichlet mixture model Markov chain.

    The state consists of three dictionaries keyed by cluster label.

    ``phi`` maps a label to the parameters of the cluster, a tuple whose
    layout depends on the component model.
    ``Y`` maps a label to the list of indices (rows of `data`) of the
    observations currently assigned to the cluster.
    ``n`` maps a label to the number of observations in the cluster.

    ``phi`` and ``n`` always share the same labels. ``n[k] == len(Y[k])``
    holds whenever ``Y`` is reconciled; ``Y`` may lag behind between the
    removal of an observation and the next call to `cleanup`.

    Labels are positive integers. They need not be contiguous, and a label
    is only handed out again once its cluster has been purged by `cleanup`.

    Parameters
    ----------
    data : array of shape (n_observations, n_features) or (n_observations, )
        Observations of the chain. The array is copied and made read-only,
        so it can be shared between chains.

    Examples
    --------
    >>> state = ClusterState.from_model(X, MultivariateNormalModel())
    >>> state.n_clusters == len(X)
    True
    """

    def __init__(self, data, phi=None, Y=None, n=None):
        # a read-only array owning its memory cannot change under the chain
        shared = (isinstance(data, np.ndarray) and not data.flags.writeable
                  and data.base is None)
        self.data = check_array(data, dtype=[np.float64, np.float32],
                                ensure_2d=False, copy=not shared)
        if self.data.base is not None:
            self.data = self.data.copy()
        self.data.setflags(write=False)
        self.phi = {} if phi is None else phi
        self.Y = {} if Y is None else Y
        self.n = {} if n is None else n

        if set(self.phi) != set(self.n):
            raise InvariantViolation(
                "phi and n must hold the same cluster labels, got %s and %s"
                % (sorted(self.phi), sorted(self.n)))

    @classmethod
    def from_state(cls, state):
        """New state keeping the parameters and sizes of the clusters of
        `state` but none of its assignments.

        The mappings are copied so that `state` is left untouched by any
        later update of the new state.
        """
        return cls(state.data, phi=dict(state.phi), n=dict(state.n))

    @classmethod
    def from_model(cls, data, model, random_state=None):
        """Initial state of a chain: every observation is alone in its
        cluster, with parameters sampled from the posterior given that
        observation only.

        Parameters
        ----------
        data : array of shape (n_observations, n_features) or (n_observations, )

        model : ConjugateModel

        random_state : int, RandomState instance or None, default=None

        Returns
        -------
        state : ClusterState
        """
        random_state = check_random_state(random_state)
        state = cls(data)
        for j in range(len(state.data)):
            phi = model.sample_posterior(state.get_data([j]),
                                         random_state=random_state)
            state.create_cluster(j, phi, label=j + 1)
        logger.debug("Initialized %d singleton clusters", state.n_clusters)
        return state

    @property
    def n_clusters(self):
        """Number of live clusters."""
        return len(self.n)

    def get_data(self, indices):
        """Observations indexed by `indices`, a single row index or a list
        of them."""
        return self.data[indices]

    def add_point(self, j, phi):
        """Add the observation `j` given its cluster parameters, the label
        being unknown.

        The observation joins the cluster whose parameters are equal to
        `phi` up to relative error, or opens a new cluster when there is
        none. After the parameters of every observation have been resampled
        independently, this rebuilds the partition.

        Parameters
        ----------
        j : int
            Index of the observation.

        phi : tuple
            Cluster parameters of the observation.

        Returns
        -------
        label : int
        """
        for i, phi_i in self.phi.items():
            if approx_equal(phi, phi_i):
                self.add_to_cluster(j, i)
                return i
        return self.create_cluster(j, phi)

    def add_to_cluster(self, j, i):
        """Add the observation `j` to the existing cluster `i`. The cluster
        parameters are assumed to be up to date."""
        if i not in self.phi or i not in self.n:
            raise InvariantViolation(
                "Cannot add observation %s to unknown cluster %s" % (j, i))
        self.n[i] += 1
        if i in self.Y:
            self.Y[i].append(j)
        else:
            self.Y[i] = [j]

    def create_cluster(self, j, phi, label=None):
        """Open a new cluster holding the observation `j`.

        Parameters
        ----------
        j : int
            Index of the observation.

        phi : tuple
            Parameters of the new cluster.

        label : int, default=None
            Label of the new cluster. If it is None, the smallest free label
            is used. An explicit label is not checked for collisions.

        Returns
        -------
        label : int
        """
        if label is None:
            label = self._free_label()

        self.Y[label] = [j]
        self.n[label] = 1
        self.phi[label] = phi
        logger.debug("Created cluster %d with observation %d", label, j)
        return label

    def _free_label(self):
        # at most n_clusters + 1 probes, whatever labels were used before
        label = 1
        while label in self.n:
            label += 1
        return label

    def remove_from_cluster(self, j, i):
        """Remove the observation `j` from the cluster `i`.

        An emptied cluster keeps its label and parameters until `cleanup`
        is called.
        """
        if i not in self.n:
            raise InvariantViolation(
                "Cannot remove observation %s from unknown cluster %s"
                % (j, i))
        if self.n[i] < 1:
            raise InvariantViolation(
                "Cannot remove observation %s from empty cluster %s"
                % (j, i))
        self.n[i] -= 1
        members = self.Y.get(i)
        if members is not None and j in members:
            members.remove(j)

    def cleanup(self):
        """Remove all empty clusters.

        Returns
        -------
        labels : list of int
            Labels of the removed clusters, now free for reuse.
        """
        empty = [k for k, v in self.n.items() if v == 0]
        for k in empty:
            del self.n[k]
            del self.phi[k]
            self.Y.pop(k, None)
        if empty:
            logger.debug("Removed empty clusters %s", empty)
        return empty

    def __repr__(self):
        return "%s(n_observations=%d, n=%r)" % (
            type(self).__name__, len(self.data), self.n)
