#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import amaranth.cli

import numpy as np


class HistoryBuffer(Elaboratable):
    """History buffer

    This module is a shift register holding the ``num_taps`` most recent
    input samples, most recent first. On each clock cycle the input sample
    is stored at position 0 and the remaining samples move one position
    towards the end of the buffer, so that the oldest sample is discarded.

    Parameters
    ----------
    num_taps : int
        Number of samples stored.
    width : int
        Width of the samples.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    sample_in : Signal(signed(width)), in
        Input sample.
    samples : list of Signal(signed(width)), out
        Buffer contents. ``samples[k]`` is the input sample delayed by
        ``k + 1`` clock cycles.
    """
    def __init__(self, num_taps, width):
        if num_taps < 1:
            raise ValueError('num_taps must be greater or equal than 1')
        self.num_taps = num_taps
        self.w = width

        self.sample_in = Signal(signed(self.w))
        self.samples = [Signal(signed(self.w), name=f'history{k}')
                        for k in range(self.num_taps)]

    @property
    def delay(self):
        return 1

    def model(self, x):
        """Buffer contents after each input sample

        Returns an array of shape ``(len(x), num_taps)`` whose row ``n``
        holds ``x[n], x[n-1], ...``, with zeros before the first sample.
        """
        x = np.asarray(x)
        out = np.zeros((x.size, self.num_taps), dtype=x.dtype)
        for k in range(min(self.num_taps, x.size)):
            out[k:, k] = x[:x.size - k]
        return out

    def elaborate(self, platform):
        m = Module()
        m.d.sync += self.samples[0].eq(self.sample_in)
        m.d.sync += [self.samples[k].eq(self.samples[k - 1])
                     for k in range(1, self.num_taps)]
        return m


if __name__ == '__main__':
    history = HistoryBuffer(8, 16)
    amaranth.cli.main(
        history, ports=[history.sample_in] + history.samples)
