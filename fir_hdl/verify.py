#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
from amaranth.lib import enum
from amaranth.sim import Simulator
import amaranth.cli

from .config import FIRConfig
from .fir import FIRPipeline
from .reference import ReferenceFIR


class VerificationMismatch(Exception):
    """The pipelined FIR and the reference model disagree

    Attributes
    ----------
    tick : int
        Number of clock cycles since the comparator was (re)started when the
        mismatching outputs were compared.
    expected : int
        Reference model output, delayed to align it with the pipeline.
    actual : int
        Pipeline output.
    cycle : Optional[int]
        Number of clock cycles since the start of the simulation when the
        mismatching outputs were compared. Unlike ``tick``, this is not
        cleared by the pipeline reset.
    sample : Optional[int]
        Index of the input sample whose output mismatched.
    """
    def __init__(self, tick, expected, actual, *, cycle=None, sample=None):
        self.tick = tick
        self.expected = expected
        self.actual = actual
        self.cycle = cycle
        self.sample = sample
        msg = (f'pipeline output {actual} does not match reference output '
               f'{expected} at tick {tick}')
        if sample is not None:
            msg += f' (input sample {sample})'
        super().__init__(msg)


class ComparatorState(enum.Enum, shape=2):
    WARMUP = 0
    ACTIVE = 1
    HALT = 2


class LatencyAligner(Elaboratable):
    """Latency aligner

    A shift register that delays its input by ``depth`` clock cycles. It is
    used to align the output of a module with small latency with that of a
    module with larger latency.

    Parameters
    ----------
    width : int
        Width of the values.
    depth : int
        Delay in clock cycles. A depth of 0 gives a combinational
        pass-through.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    value_in : Signal(signed(width)), in
        Input value.
    value_out : Signal(signed(width)), out
        Input value delayed ``depth`` clock cycles.
    """
    def __init__(self, width, depth):
        if depth < 0:
            raise ValueError('depth must be non-negative')
        self.w = width
        self.depth = depth

        self.value_in = Signal(signed(self.w))
        self.value_out = Signal(signed(self.w))

    @property
    def delay(self):
        return self.depth

    def elaborate(self, platform):
        m = Module()
        q = [Signal(signed(self.w), name=f'aligned_q{i+1}')
             for i in range(self.depth)]
        if q:
            m.d.sync += q[0].eq(self.value_in)
            m.d.sync += [q[j].eq(q[j - 1]) for j in range(1, len(q))]
            m.d.comb += self.value_out.eq(q[-1])
        else:
            m.d.comb += self.value_out.eq(self.value_in)
        return m


class Comparator(Elaboratable):
    """Output comparator

    This module checks that the output of a module under test matches an
    expected value on every clock cycle. After a (re)start, it stays in the
    ``WARMUP`` state for ``latency`` clock cycles, during which the outputs
    are not valid and are not compared. Then it goes to the ``ACTIVE``
    state, where it compares the inputs on every clock cycle. On the first
    mismatch it latches the clock cycle count and the two values and goes
    to the ``HALT`` state. There is no transition out of ``HALT``, not even
    by ``restart``. Only the reset of the clock domain clears it.

    Parameters
    ----------
    width : int
        Width of the values compared.
    latency : int
        Number of clock cycles to wait before comparing.
    tick_width : int
        Width of the clock cycle counter.

    Attributes
    ----------
    restart : Signal(), in
        Return to ``WARMUP`` and clear the clock cycle counter. This is
        ignored in the ``HALT`` state.
    expected : Signal(signed(width)), in
        Expected value.
    actual : Signal(signed(width)), in
        Value to check.
    state : Signal(ComparatorState), out
        Current state.
    ticks : Signal(tick_width), out
        Clock cycles elapsed since the last (re)start.
    cycles : Signal(tick_width), out
        Clock cycles elapsed since the reset of the clock domain. It is not
        cleared by ``restart``.
    mismatch : Signal(), out
        Asserted in the clock cycle in which ``expected`` and ``actual``
        are compared and differ.
    halted : Signal(), out
        Asserted in the ``HALT`` state.
    mismatch_tick : Signal(tick_width), out
        Value of ``ticks`` when the mismatch was found.
    mismatch_cycle : Signal(tick_width), out
        Value of ``cycles`` when the mismatch was found.
    mismatch_expected : Signal(signed(width)), out
        Value of ``expected`` when the mismatch was found.
    mismatch_actual : Signal(signed(width)), out
        Value of ``actual`` when the mismatch was found.
    """
    def __init__(self, width, latency, *, tick_width=32):
        self.w = width
        self.latency = latency

        self.restart = Signal()
        self.expected = Signal(signed(self.w))
        self.actual = Signal(signed(self.w))
        self.state = Signal(ComparatorState, init=ComparatorState.WARMUP)
        self.ticks = Signal(tick_width)
        self.cycles = Signal(tick_width)
        self.mismatch = Signal()
        self.halted = Signal()
        self.mismatch_tick = Signal(tick_width)
        self.mismatch_cycle = Signal(tick_width)
        self.mismatch_expected = Signal(signed(self.w))
        self.mismatch_actual = Signal(signed(self.w))

    def elaborate(self, platform):
        m = Module()
        m.d.comb += [
            self.mismatch.eq(
                (self.state == ComparatorState.ACTIVE)
                & (self.expected != self.actual)),
            self.halted.eq(self.state == ComparatorState.HALT),
        ]
        with m.If(~self.halted):
            m.d.sync += [
                self.ticks.eq(self.ticks + 1),
                self.cycles.eq(self.cycles + 1),
            ]
            with m.If(self.restart):
                m.d.sync += [
                    self.ticks.eq(0),
                    self.state.eq(ComparatorState.WARMUP),
                ]
            with m.Elif(self.mismatch):
                m.d.sync += [
                    self.state.eq(ComparatorState.HALT),
                    self.mismatch_tick.eq(self.ticks),
                    self.mismatch_cycle.eq(self.cycles),
                    self.mismatch_expected.eq(self.expected),
                    self.mismatch_actual.eq(self.actual),
                ]
            with m.Elif(self.ticks == self.latency):
                m.d.sync += self.state.eq(ComparatorState.ACTIVE)
        return m


class VerificationTb(Elaboratable):
    """Verification testbench for the pipelined FIR

    This module feeds the same input samples to a ``FIRPipeline`` and to a
    ``ReferenceFIR``, delays the output of the reference with a
    ``LatencyAligner`` so that it is aligned with the output of the
    pipeline, and checks that both are equal with a ``Comparator``.

    Parameters
    ----------
    config : FIRConfig
        Filter configuration.
    reference_config : Optional[FIRConfig]
        Configuration for the reference filter. By default ``config`` is
        used. A different configuration can be given to check that the
        mismatches are detected. It must give the same output width.

    Attributes
    ----------
    reset : Signal(), in
        Synchronous reset for the filters. It also restarts the comparator.
    sample_in : Signal(signed(data_width)), in
        Input sample.
    sample_out : Signal(signed(output_width)), out
        Output of the pipelined FIR.
    """
    def __init__(self, config, reference_config=None):
        self.pipeline = FIRPipeline(config)
        self.reference = ReferenceFIR(
            config if reference_config is None else reference_config)
        if self.reference.output_width != self.pipeline.output_width:
            raise ValueError(
                'the reference and the pipeline output widths differ')
        self.aligner = LatencyAligner(
            self.pipeline.output_width,
            self.pipeline.delay - self.reference.delay)
        self.comparator = Comparator(
            self.pipeline.output_width, self.aligner.delay)

        self.reset = Signal()
        self.sample_in = Signal(signed(config.data_width))
        self.sample_out = self.pipeline.sample_out

    @property
    def delay(self):
        return self.pipeline.delay

    def elaborate(self, platform):
        m = Module()
        m.submodules.pipeline = self.pipeline
        m.submodules.reference = ResetInserter(self.reset)(self.reference)
        m.submodules.aligner = ResetInserter(self.reset)(self.aligner)
        m.submodules.comparator = self.comparator
        m.d.comb += [
            self.pipeline.reset.eq(self.reset),
            self.pipeline.sample_in.eq(self.sample_in),
            self.reference.sample_in.eq(self.sample_in),
            self.aligner.value_in.eq(self.reference.sample_out),
            self.comparator.restart.eq(self.reset),
            self.comparator.expected.eq(self.aligner.value_out),
            self.comparator.actual.eq(self.pipeline.sample_out),
        ]
        return m


def run_verification(config, samples, *, resets=(), reference_config=None,
                     vcd=None):
    """Simulate the FIR pipeline against the reference model

    The samples are fed one per clock cycle, followed by enough zeros to
    flush the pipeline. The reset is asserted together with the samples
    whose indices are listed in ``resets`` (those samples are discarded).

    Returns the outputs of the pipeline once they are valid, aligned so
    that ``outputs[j]`` corresponds to ``samples[j]``. Raises
    ``VerificationMismatch`` as soon as the comparator halts.
    """
    tb = VerificationTb(config, reference_config=reference_config)
    comparator = tb.comparator
    resets = set(resets)
    stimulus = [int(x) for x in samples] + [0] * tb.delay
    outputs = []

    def check_halted(ctx):
        if ctx.get(comparator.halted):
            cycle = ctx.get(comparator.mismatch_cycle)
            raise VerificationMismatch(
                ctx.get(comparator.mismatch_tick),
                ctx.get(comparator.mismatch_expected),
                ctx.get(comparator.mismatch_actual),
                cycle=cycle,
                # samples[j] is sampled in cycle j + 2 and its output is
                # compared delay - 1 cycles later
                sample=cycle - tb.delay - 1)

    async def bench(ctx):
        for j, x in enumerate(stimulus):
            await ctx.tick()
            check_halted(ctx)
            outputs.append(ctx.get(tb.sample_out))
            ctx.set(tb.reset, j in resets)
            ctx.set(tb.sample_in, x)
        # the last comparison is latched one clock cycle later
        await ctx.tick()
        check_halted(ctx)

    sim = Simulator(tb)
    sim.add_clock(12e-9)
    sim.add_testbench(bench)
    if vcd is None:
        sim.run()
    else:
        with sim.write_vcd(vcd):
            sim.run()
    return outputs[tb.delay:]


if __name__ == '__main__':
    tb = VerificationTb(FIRConfig())
    amaranth.cli.main(
        tb, ports=[tb.reset, tb.sample_in, tb.sample_out,
                   tb.comparator.halted])
