#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import amaranth.back.verilog

import argparse

import numpy as np

from . import configs
from .adder_tree import SummationTree
from .config import FIRConfig
from .history import HistoryBuffer
from .multiply import MultiplyStage


def convolve(coefficients, x, output_width):
    """Causal convolution with zero initial history

    Output ``n`` is ``sum(coefficients[k] * x[n - k])``. Python integers are
    used when the result does not fit in 64 bits.
    """
    dtype = 'int64' if output_width < 64 else object
    x = np.asarray(x).astype(dtype)
    y = np.zeros(x.size, dtype=dtype)
    for k, c in enumerate(coefficients):
        if k < x.size:
            y[k:] += int(c) * x[:x.size - k]
    return y


class FIRPipeline(Elaboratable):
    """Pipelined FIR filter

    This module is a causal FIR filter with constant coefficients that
    accepts one input sample and produces one output sample per clock
    cycle. It is composed of a ``HistoryBuffer`` holding the last
    ``num_taps`` samples, a ``MultiplyStage`` that computes all the
    products in parallel, and a ``SummationTree`` that adds them over
    ``log2(num_taps)`` registered levels. All the arithmetic is performed
    in full precision.

    Parameters
    ----------
    config : FIRConfig
        Filter configuration. If it is not given, a ``FIRConfig`` is built
        from the remaining keyword arguments.
    coefficients : Sequence[int]
        Filter taps (only used if ``config`` is not given).
    data_width : int
        Width of the input samples (only used if ``config`` is not given).
    coeff_width : int
        Width of the coefficients (only used if ``config`` is not given).

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module, ``2 + log2(num_taps)``.
    output_width : int
        Width of the output, ``data_width + coeff_width + log2(num_taps)``.
    reset : Signal(), in
        Synchronous reset. Clears the history, the products and all the
        levels of the summation tree.
    sample_in : Signal(signed(data_width)), in
        Input sample.
    sample_out : Signal(signed(output_width)), out
        Output sample. Corresponds to the input presented ``delay`` clock
        cycles before. The first ``delay`` outputs after a reset are zero.
    """
    def __init__(self, config=None, **kwargs):
        if config is None:
            config = FIRConfig(**kwargs)
        config.validate()
        self.config = config
        self.coefficients = config.coefficients
        self.num_taps = config.num_taps
        self.dw = config.data_width
        self.cw = config.coeff_width
        self.output_width = config.output_width

        self.history = HistoryBuffer(self.num_taps, self.dw)
        self.multiply = MultiplyStage(self.coefficients, self.dw, self.cw)
        self.tree = SummationTree(self.num_taps, self.multiply.outw)
        assert self.tree.output_width == self.output_width

        self.reset = Signal()
        self.sample_in = Signal(signed(self.dw))
        self.sample_out = Signal(signed(self.output_width))

    @property
    def delay(self):
        return (self.history.delay + self.multiply.delay
                + self.tree.delay)

    def model(self, x):
        """Filter output for the input ``x``

        The output is not delayed: ``model(x)[n]`` is the output that
        corresponds to ``x[n]``.
        """
        return convolve(self.coefficients, x, self.output_width)

    def ports(self):
        return [self.reset, self.sample_in, self.sample_out]

    def elaborate(self, platform):
        m = Module()
        reset = ResetInserter(self.reset)
        m.submodules.history = reset(self.history)
        m.submodules.multiply = reset(self.multiply)
        m.submodules.tree = reset(self.tree)

        m.d.comb += self.history.sample_in.eq(self.sample_in)
        m.d.comb += [x.eq(h) for x, h in zip(self.multiply.samples_in,
                                             self.history.samples)]
        m.d.comb += [t.eq(p) for t, p in zip(self.tree.inputs,
                                             self.multiply.products)]
        m.d.comb += self.sample_out.eq(self.tree.output)
        return m


def parse_args():
    parser = argparse.ArgumentParser(
        description='Generate Verilog for the pipelined FIR filter')
    parser.add_argument(
        '--config', default='default',
        help='FIR configuration name [default=%(default)r]')
    parser.add_argument(
        '--name', default='fir_pipeline',
        help='Verilog module name [default=%(default)r]')
    parser.add_argument(
        'output_file', help='Output verilog file')
    return parser.parse_args()


def main():
    args = parse_args()
    config = getattr(configs, args.config)()
    fir = FIRPipeline(config)
    with open(args.output_file, 'w') as f:
        f.write(amaranth.back.verilog.convert(
            fir, name=args.name, ports=fir.ports(), emit_src=False))


if __name__ == '__main__':
    main()
