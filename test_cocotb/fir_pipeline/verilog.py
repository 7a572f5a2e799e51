#!/usr/bin/env python3
#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
from amaranth.back.verilog import convert

from fir_hdl import configs
from fir_hdl.fir import FIRPipeline


def main():
    m = FIRPipeline(configs.lowpass())
    with open('dut.v', 'w') as f:
        f.write('`timescale 1ps/1ps\n')
        f.write(convert(
            m, name='dut', ports=m.ports(), emit_src=False))


if __name__ == '__main__':
    main()
