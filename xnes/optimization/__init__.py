# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Algorithm  # abstract class, for type checking
from .base import ConfiguredAlgorithm
from .base import LogEntry
from .base import registry
from .population import Population
from .xnes import ParametrizedXNES
from .xnes import DistributionState
from .xnes import XNES
from .xnes import MemoryXNES
