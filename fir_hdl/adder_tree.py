#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import amaranth.cli

from .util import exact_log2


class SummationTree(Elaboratable):
    """Pipelined summation tree

    This module adds ``num_inputs`` values using a binary tree of adders
    with a register after each level. Level 0 are the inputs, and element
    ``i`` of level ``l`` is the sum of elements ``2*i`` and ``2*i + 1`` of
    level ``l - 1``, as they were on the previous clock cycle. Each level
    grows one bit, so the output is ``log2(num_inputs)`` bits wider than the
    inputs and the sum never overflows.

    The number of inputs must be a power of two. A tree with a single input
    has no levels and its output is its input.

    Parameters
    ----------
    num_inputs : int
        Number of values to add.
    input_width : int
        Width of the input values.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    depth : int
        Number of adder levels, ``log2(num_inputs)``.
    output_width : int
        Width of the output, ``input_width + depth``.
    inputs : list of Signal(signed(input_width)), in
        Values to add.
    levels : list of list of Signal
        Registers of each level. ``levels[0]`` is ``inputs`` and
        ``levels[l]`` has ``num_inputs // 2**l`` elements of width
        ``input_width + l``.
    output : Signal(signed(output_width)), out
        Sum of the inputs.
    """
    def __init__(self, num_inputs, input_width):
        try:
            self.depth = exact_log2(num_inputs)
        except ValueError:
            raise ValueError(
                'the number of inputs of the summation tree must be a '
                f'power of two, got {num_inputs}') from None
        self.num_inputs = num_inputs
        self.w = input_width
        self.output_width = input_width + self.depth

        self.inputs = [Signal(signed(self.w), name=f'tree_in{i}')
                       for i in range(num_inputs)]
        self.levels = [self.inputs]
        for level in range(1, self.depth + 1):
            self.levels.append(
                [Signal(signed(self.w + level), name=f'level{level}_{i}')
                 for i in range(num_inputs >> level)])
        self.output = self.levels[-1][0]

    @property
    def delay(self):
        return self.depth

    def model(self, inputs):
        """Values of all the levels when adding ``inputs``

        The additions are performed in the same order as in the
        hardware.
        """
        assert len(inputs) == self.num_inputs
        levels = [list(inputs)]
        for _ in range(self.depth):
            below = levels[-1]
            levels.append([below[2*i] + below[2*i + 1]
                           for i in range(len(below) // 2)])
        return levels

    def elaborate(self, platform):
        m = Module()
        for below, level in zip(self.levels, self.levels[1:]):
            m.d.sync += [s.eq(below[2*i] + below[2*i + 1])
                         for i, s in enumerate(level)]
        return m


if __name__ == '__main__':
    tree = SummationTree(8, 32)
    amaranth.cli.main(tree, ports=tree.inputs + [tree.output])
