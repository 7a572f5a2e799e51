#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import amaranth.cli

from .config import FIRConfig
from .fir import convolve


class ReferenceFIR(Elaboratable):
    """Non-pipelined reference FIR filter

    This module computes the same convolution as ``FIRPipeline`` using a
    single combinational sum of products over the current input sample and
    the previous ``num_taps - 1`` samples, which are kept in a shift
    register of its own. It has no pipelining, so its output corresponds to
    the current input. It is intended as a ground truth for verification
    and its critical path is too long for a practical implementation.

    Parameters
    ----------
    config : FIRConfig
        Filter configuration. It must have the same coefficients as the
        ``FIRPipeline`` under test.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    output_width : int
        Width of the output, the same as in ``FIRPipeline``.
    sample_in : Signal(signed(data_width)), in
        Input sample.
    sample_out : Signal(signed(output_width)), out
        Output sample.
    """
    def __init__(self, config=None, **kwargs):
        if config is None:
            config = FIRConfig(**kwargs)
        config.validate()
        self.coefficients = config.coefficients
        self.num_taps = config.num_taps
        self.dw = config.data_width
        self.cw = config.coeff_width
        self.output_width = config.output_width

        self.sample_in = Signal(signed(self.dw))
        self.sample_out = Signal(signed(self.output_width))

    @property
    def delay(self):
        return 0

    def model(self, x):
        return convolve(self.coefficients, x, self.output_width)

    def elaborate(self, platform):
        m = Module()
        past = [Signal(signed(self.dw), name=f'ref_x{k+1}')
                for k in range(self.num_taps - 1)]
        window = [self.sample_in] + past
        m.d.sync += [p.eq(w) for p, w in zip(past, window)]
        m.d.comb += self.sample_out.eq(
            sum(x * Const(c, signed(self.cw))
                for x, c in zip(window, self.coefficients)))
        return m


if __name__ == '__main__':
    ref = ReferenceFIR(FIRConfig())
    amaranth.cli.main(ref, ports=[ref.sample_in, ref.sample_out])
