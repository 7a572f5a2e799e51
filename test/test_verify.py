#
# Copyright (C) 2024 fir-hdl developers
#
# This file is part of fir-hdl
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import numpy as np

import unittest

from fir_hdl import configs
from fir_hdl.config import FIRConfig
from fir_hdl.verify import (
    Comparator, ComparatorState, LatencyAligner, VerificationMismatch,
    VerificationTb, run_verification)
from .amaranth_sim import AmaranthSim


class TestLatencyAligner(AmaranthSim):
    def test_random_inputs(self):
        width = 20
        for depth in [1, 5]:
            with self.subTest(depth=depth):
                self.dut = LatencyAligner(width, depth)
                self.common_random_inputs(width)

    def common_random_inputs(self, width):
        num_inputs = 100
        v = self.random_samples(width, num_inputs)

        async def bench(ctx):
            for j in range(num_inputs):
                await ctx.tick()
                ctx.set(self.dut.value_in, int(v[j]))
                if j >= self.dut.delay:
                    out = ctx.get(self.dut.value_out)
                    expected = v[j - self.dut.delay]
                    assert out == expected, \
                        f'out = {out}, expected = {expected} @ cycle = {j}'

        self.simulate(bench)

    def test_pass_through(self):
        width = 20
        self.dut = LatencyAligner(width, 0)
        self.assertEqual(self.dut.delay, 0)
        v = self.random_samples(width, 50)

        async def bench(ctx):
            for j in range(v.size):
                ctx.set(self.dut.value_in, int(v[j]))
                await ctx.delay(1e-9)
                out = ctx.get(self.dut.value_out)
                assert out == v[j], \
                    f'out = {out}, expected = {v[j]} @ sample = {j}'

        self.simulate(bench, clock=False)

    def test_negative_depth(self):
        with self.assertRaises(ValueError):
            LatencyAligner(8, -1)


class TestComparator(AmaranthSim):
    def setUp(self):
        self.latency = 3
        self.dut = Comparator(8, self.latency)

    def test_warmup_active_halt(self):
        async def bench(ctx):
            # mismatches are ignored during the warm-up
            ctx.set(self.dut.expected, 1)
            ctx.set(self.dut.actual, 2)
            for j in range(self.latency):
                await ctx.tick()
                assert ctx.get(self.dut.state) == ComparatorState.WARMUP
                assert ctx.get(self.dut.ticks) == j + 1
                assert not ctx.get(self.dut.mismatch)
            ctx.set(self.dut.actual, 1)
            await ctx.tick()
            assert ctx.get(self.dut.state) == ComparatorState.ACTIVE
            assert ctx.get(self.dut.ticks) == self.latency + 1
            for _ in range(5):
                await ctx.tick()
                assert ctx.get(self.dut.state) == ComparatorState.ACTIVE
            assert ctx.get(self.dut.ticks) == self.latency + 6
            ctx.set(self.dut.actual, -7)
            assert ctx.get(self.dut.mismatch)
            await ctx.tick()
            assert ctx.get(self.dut.state) == ComparatorState.HALT
            assert ctx.get(self.dut.halted)
            assert ctx.get(self.dut.mismatch_tick) == self.latency + 6
            assert ctx.get(self.dut.mismatch_cycle) == self.latency + 6
            assert ctx.get(self.dut.mismatch_expected) == 1
            assert ctx.get(self.dut.mismatch_actual) == -7
            # there is no way out of HALT
            ticks = ctx.get(self.dut.ticks)
            ctx.set(self.dut.actual, 1)
            ctx.set(self.dut.restart, 1)
            for _ in range(4):
                await ctx.tick()
                assert ctx.get(self.dut.state) == ComparatorState.HALT
                assert ctx.get(self.dut.ticks) == ticks
                assert ctx.get(self.dut.mismatch_actual) == -7

        self.simulate(bench)

    def test_restart(self):
        async def bench(ctx):
            for _ in range(self.latency + 4):
                await ctx.tick()
            assert ctx.get(self.dut.state) == ComparatorState.ACTIVE
            ctx.set(self.dut.restart, 1)
            await ctx.tick()
            ctx.set(self.dut.restart, 0)
            assert ctx.get(self.dut.state) == ComparatorState.WARMUP
            assert ctx.get(self.dut.ticks) == 0
            # the cycle counter is not cleared by the restart
            assert ctx.get(self.dut.cycles) == self.latency + 5
            # a mismatch right after the restart is not compared
            ctx.set(self.dut.actual, 5)
            for _ in range(self.latency):
                await ctx.tick()
                assert ctx.get(self.dut.state) == ComparatorState.WARMUP
            ctx.set(self.dut.actual, 0)
            await ctx.tick()
            assert ctx.get(self.dut.state) == ComparatorState.ACTIVE

        self.simulate(bench)


class TestVerification(unittest.TestCase):
    def test_equivalence(self):
        for name in ['default', 'lowpass', 'wide']:
            with self.subTest(config=name):
                config = getattr(configs, name)()
                x = np.random.randint(-2**(config.data_width - 1),
                                      2**(config.data_width - 1),
                                      size=400)
                out = run_verification(config, x)
                np.testing.assert_equal(
                    out, VerificationTb(config).pipeline.model(x))

    def test_aligner_depth(self):
        tb = VerificationTb(FIRConfig([1] * 16))
        self.assertEqual(tb.aligner.depth, 2 + 4)
        self.assertEqual(tb.comparator.latency, tb.delay)

    def test_resets(self):
        config = configs.default()
        x = np.random.randint(-2**15, 2**15, size=300)
        resets = [30, 31, 100, 102, 250]
        out = run_verification(config, x, resets=resets)
        model = VerificationTb(config).pipeline.model
        np.testing.assert_equal(out[251:], model(x[251:]))

    def test_impulse(self):
        config = FIRConfig([3, -1, 4, 1, -5, 9, 2, -6])
        out = run_verification(config, [100] + [0] * 13)
        self.assertEqual(out, [100 * c for c in config.coefficients]
                         + [0] * 6)

    def test_mismatch(self):
        config = FIRConfig([3, -1, 4, 1, -5, 9, 2, -6])
        # the reference model disagrees on the last tap
        wrong = FIRConfig([3, -1, 4, 1, -5, 9, 2, -7])
        delay = 2 + 3
        with self.assertRaises(VerificationMismatch) as cm:
            run_verification(config, [1] + [0] * 20, reference_config=wrong)
        self.assertEqual(cm.exception.tick, 7 + delay + 1)
        self.assertEqual(cm.exception.expected, -7)
        self.assertEqual(cm.exception.actual, -6)
        self.assertIn('tick 13', str(cm.exception))
        self.assertEqual(cm.exception.cycle, 13)
        self.assertEqual(cm.exception.sample, 7)
        self.assertIn('input sample 7', str(cm.exception))

    def test_mismatch_after_reset(self):
        config = FIRConfig([1, 1])
        wrong = FIRConfig([1, 2])
        delay = 2 + 1
        x = [0] * 300
        # the outputs only differ for the sample that follows the impulse
        x[199] = 5
        with self.assertRaises(VerificationMismatch) as cm:
            run_verification(config, x, resets=[100], reference_config=wrong)
        self.assertEqual(cm.exception.sample, 200)
        self.assertEqual(cm.exception.cycle, 200 + delay + 1)
        # the reset is sampled in cycle 102, when the tick count restarts
        self.assertEqual(cm.exception.tick, 200 + delay + 1 - 102)
        self.assertEqual(cm.exception.expected, 10)
        self.assertEqual(cm.exception.actual, 5)

    def test_single_tap(self):
        x = np.random.randint(-2**15, 2**15, size=100)
        out = run_verification(FIRConfig([7]), x)
        np.testing.assert_array_equal(out, 7 * x)

    def test_mismatch_on_last_sample(self):
        config = FIRConfig([1, 1])
        wrong = FIRConfig([1, 2])
        with self.assertRaises(VerificationMismatch):
            # only the output for the last sample differs
            run_verification(config, [0] * 10 + [5, 0],
                             reference_config=wrong)

    def test_reference_width_mismatch(self):
        with self.assertRaises(ValueError):
            VerificationTb(FIRConfig([1] * 8),
                           reference_config=FIRConfig([1] * 16))

    def test_not_power_of_two(self):
        with self.assertRaisesRegex(ValueError, 'power of two'):
            run_verification(FIRConfig([1] * 6), [1, 2, 3])


if __name__ == '__main__':
    unittest.main()
