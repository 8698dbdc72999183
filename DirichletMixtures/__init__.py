# Author: Chariff Alkhassim <chariff.alkhassim@gmail.com>
# License: MIT

import logging

from .base import AbstractMixtureModel, ConjugateModel
from .exceptions import InvariantViolation
from .gaussian_model import MultivariateNormalModel
from .output import OutputState, export_states
from .state import ClusterState
from .utils import approx_equal

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ['AbstractMixtureModel',
           'ConjugateModel',
           'MultivariateNormalModel',
           'ClusterState',
           'OutputState',
           'InvariantViolation',
           'approx_equal',
           'export_states']
