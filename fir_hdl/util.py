#
# Copyright (C) 2022-2023 Daniel Estevez <daniel@destevez.net>
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

def clamp_nbits(x, nbits):
    offset = 2**(nbits - 1)
    return ((x + offset) % 2**nbits) - offset


def is_power_of_two(n):
    return n >= 1 and n & (n - 1) == 0


def exact_log2(n):
    """Base-2 logarithm of a power of two

    Raises ``ValueError`` if ``n`` is not a power of two.
    """
    if not is_power_of_two(n):
        raise ValueError(f'{n} is not a power of two')
    return n.bit_length() - 1


def signed_range(nbits):
    """Range of values representable as a signed ``nbits`` integer"""
    return range(-2**(nbits - 1), 2**(nbits - 1))
