#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

import numpy as np
import scipy.signal

from .config import FIRConfig


def quantize_taps(taps, coeff_width):
    """Quantize floating point taps to signed integers

    The taps are scaled so that the largest one in absolute value maps to
    the largest positive value representable in ``coeff_width`` bits.
    """
    taps = np.asarray(taps, 'float')
    scale = (2**(coeff_width - 1) - 1) / np.max(np.abs(taps))
    return [int(c) for c in np.round(taps * scale)]


def default():
    """Default configuration: 8 symmetric integer taps"""
    return FIRConfig()


def lowpass(num_taps=16, cutoff=0.25, data_width=16, coeff_width=16):
    """Windowed-sinc low-pass filter

    ``cutoff`` is given relative to the Nyquist frequency.
    """
    taps = scipy.signal.firwin(num_taps, cutoff, window='hamming')
    return FIRConfig(quantize_taps(taps, coeff_width),
                     data_width=data_width, coeff_width=coeff_width)


def wide():
    """32-tap low-pass filter with 18-bit samples and coefficients"""
    return lowpass(num_taps=32, cutoff=0.1, data_width=18, coeff_width=18)
