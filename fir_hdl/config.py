#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from .util import exact_log2, is_power_of_two, signed_range


class FIRConfig:
    """FIR filter configuration

    This class defines the build-time parameters of the pipelined FIR
    filter. The coefficients are constants baked into the gateware, so
    they cannot be changed once the filter has been elaborated.

    Parameters
    ----------
    coefficients : Sequence[int]
        Filter taps, ``coefficients[k]`` multiplies the sample delayed by
        ``k`` ticks. The number of taps must be a power of two.
    data_width : int
        Width of the signed input samples.
    coeff_width : int
        Width of the signed coefficients.
    """
    def __init__(self, coefficients=(1, 2, 3, 4, 4, 3, 2, 1), *,
                 data_width=16, coeff_width=16):
        # integral values of any numeric type are stored as int
        self.coefficients = tuple(
            int(c) if float(c).is_integer() else c for c in coefficients)
        self.data_width = data_width
        self.coeff_width = coeff_width

    @property
    def num_taps(self):
        return len(self.coefficients)

    @property
    def depth(self):
        """Number of levels of the summation tree"""
        return exact_log2(self.num_taps)

    @property
    def product_width(self):
        return self.data_width + self.coeff_width

    @property
    def output_width(self):
        return self.product_width + self.depth

    @property
    def delay(self):
        # history buffer, multiply stage and one tick per tree level
        return 2 + self.depth

    def validate(self):
        if self.num_taps == 0:
            raise ValueError('the FIR needs at least one coefficient')
        if not is_power_of_two(self.num_taps):
            raise ValueError(
                f'number of taps must be a power of two, got {self.num_taps}')
        if self.data_width < 1:
            raise ValueError(
                f'data_width must be positive, got {self.data_width}')
        if self.coeff_width < 1:
            raise ValueError(
                f'coeff_width must be positive, got {self.coeff_width}')
        representable = signed_range(self.coeff_width)
        for k, c in enumerate(self.coefficients):
            if not isinstance(c, int):
                raise ValueError(
                    f'coefficient {k} = {c} is not an integer')
            if c not in representable:
                raise ValueError(
                    f'coefficient {k} = {c} does not fit in '
                    f'{self.coeff_width} signed bits')

    def __repr__(self):
        return (f'FIRConfig({list(self.coefficients)!r}, '
                f'data_width={self.data_width}, '
                f'coeff_width={self.coeff_width})')
