# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class XnesError(Exception):
    """Base class for error raised by xnes"""


class XnesWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class XnesEarlyStopping(StopIteration, XnesError):
    """Stops the evolution loop if raised"""


class XnesRuntimeError(RuntimeError, XnesError):
    """Runtime error raised by xnes"""


class XnesTypeError(TypeError, XnesError):
    """Type error raised by xnes"""


class XnesValueError(ValueError, XnesError):
    """Value error raised by xnes, for invalid settings or unsupported problems"""


class NumericalDegeneracyError(XnesRuntimeError):
    """The search distribution became non-finite or singular"""


# warnings


class XnesRuntimeWarning(RuntimeWarning, XnesWarning):
    """Runtime warning raised by xnes"""


class InefficientSettingsWarning(XnesRuntimeWarning):
    """Optimization settings are not optimal for the algorithm"""


class BadLossWarning(XnesRuntimeWarning):
    """Provided loss is unhelpful"""
