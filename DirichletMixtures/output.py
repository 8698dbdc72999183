# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

import logging

import numpy as np


logger = logging.getLogger(__name__)


class OutputState:
    """User-friendly, read-only view of a `ClusterState`.

    Parameters
    ----------
    data : array of shape (n_observations, n_features) or (n_observations, )
        The original dataset provided to the sampler.

    labels : array of shape (n_observations, )
        Cluster label of each observation, from 1 to the number of clusters.
        An observation not listed in any cluster gets the label 0.

    phi : list of tuple
        Parameters of each cluster, in the form given by the
        ``standard_form`` of the model.

    n : array of shape (n_clusters, )
        Size of each cluster.
    """

    def __init__(self, data, labels, phi, n):
        self.data = data
        self.labels = labels
        self.phi = phi
        self.n = n

    @classmethod
    def from_state(cls, model, state):
        """Create an output state from an existing `ClusterState`.

        Clusters are numbered densely in the order of ``state.n``. The state
        is only read.

        Parameters
        ----------
        model : AbstractMixtureModel

        state : ClusterState

        Returns
        -------
        output : OutputState
        """
        K = list(state.n)
        m = len(K)
        labels = np.zeros(len(state.data), dtype=int)
        phi = []
        n = np.empty(m, dtype=int)
        for i, k in enumerate(K):
            phi.append(model.standard_form(state.phi[k]))
            n[i] = state.n[k]
            labels[state.Y.get(k, [])] = i + 1
        labels.setflags(write=False)
        n.setflags(write=False)
        return cls(state.data, labels, phi, n)

    @property
    def n_clusters(self):
        return len(self.n)

    def __repr__(self):
        return "%s(n_clusters=%d, n=%s)" % (
            type(self).__name__, self.n_clusters, self.n.tolist())


def export_states(model, states):
    """Create a list of `OutputState` objects from a list of `ClusterState`
    objects, in the same order."""
    outputs = [OutputState.from_state(model, s) for s in states]
    logger.debug("Exported %d states", len(outputs))
    return outputs
