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

from .util import signed_range


class MultiplyStage(Elaboratable):
    """Multiply stage

    This module multiplies each of its inputs by a constant coefficient in
    parallel. The products are registered and computed in full precision,
    so their width is the sum of the sample and coefficient widths.

    Parameters
    ----------
    coefficients : Sequence[int]
        Constant coefficients, one per input.
    data_width : int
        Width of the input samples.
    coeff_width : int
        Width of the coefficients.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    samples_in : list of Signal(signed(data_width)), in
        Input samples.
    products : list of Signal(signed(data_width + coeff_width)), out
        ``products[k]`` is ``samples_in[k] * coefficients[k]``.
    """
    def __init__(self, coefficients, data_width, coeff_width):
        self.coefficients = [int(c) for c in coefficients]
        for c in self.coefficients:
            if c not in signed_range(coeff_width):
                raise ValueError(
                    f'coefficient {c} does not fit in {coeff_width} bits')
        self.dw = data_width
        self.cw = coeff_width
        self.outw = data_width + coeff_width

        self.samples_in = [Signal(signed(self.dw), name=f'mult_in{k}')
                           for k in range(len(self.coefficients))]
        self.products = [Signal(signed(self.outw), name=f'product{k}')
                         for k in range(len(self.coefficients))]

    @property
    def delay(self):
        return 1

    def model(self, samples):
        return np.asarray(samples) * np.array(self.coefficients)

    def elaborate(self, platform):
        m = Module()
        for x, c, p in zip(self.samples_in, self.coefficients,
                           self.products):
            m.d.sync += p.eq(x * Const(c, signed(self.cw)))
        return m


if __name__ == '__main__':
    mult = MultiplyStage([1, -2, 3, -4], data_width=16, coeff_width=16)
    amaranth.cli.main(
        mult, ports=mult.samples_in + mult.products)
