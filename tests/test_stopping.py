import os
import tempfile
import unittest
import itertools
from unittest import mock

import numpy as np

from lsopt.exceptions import ConfigurationError
from lsopt.opt import stopping


class FakeAlgorithm(object):
    def __init__(self, iteration_last=0, error_best=np.inf):
        self.iteration_last = iteration_last
        self.error_best = error_best


class ConstantCriterion(stopping.StoppingCriterion):
    """Always answers `value`; counts how often it was asked"""
    def __init__(self, value):
        self.value = value
        self.checks = 0
        self.initializations = 0

    def initialize(self):
        self.initializations += 1

    def is_finished(self, algorithm):
        self.checks += 1
        return self.value


class TestIterationThreshold(unittest.TestCase):
    def test_threshold(self):
        criterion = stopping.IterationThresholdStoppingCriterion(3)
        finished = [criterion.is_finished(FakeAlgorithm(i)) for i in range(5)]
        self.assertEqual(finished, [False, False, False, True, True])

    def test_negative_threshold(self):
        self.assertRaises(ConfigurationError,
                          stopping.IterationThresholdStoppingCriterion, -1)


class TestMaximumIterationsWithoutImprovement(unittest.TestCase):
    def test_counts_checks_without_improvement(self):
        criterion = (
            stopping.MaximumIterationsWithoutImprovementStoppingCriterion(3))
        alg = FakeAlgorithm(error_best=10.0)
        self.assertFalse(criterion.is_finished(alg))  # first improvement
        self.assertFalse(criterion.is_finished(alg))
        self.assertFalse(criterion.is_finished(alg))
        self.assertTrue(criterion.is_finished(alg))

    def test_improvement_resets_count(self):
        criterion = (
            stopping.MaximumIterationsWithoutImprovementStoppingCriterion(2))
        alg = FakeAlgorithm(error_best=10.0)
        criterion.is_finished(alg)
        criterion.is_finished(alg)
        alg.error_best = 5.0
        self.assertFalse(criterion.is_finished(alg))
        self.assertEqual(criterion.iterations_without_improvement, 0)
        self.assertFalse(criterion.is_finished(alg))
        self.assertTrue(criterion.is_finished(alg))

    def test_initialize_resets(self):
        criterion = (
            stopping.MaximumIterationsWithoutImprovementStoppingCriterion(1))
        alg = FakeAlgorithm(error_best=1.0)
        criterion.is_finished(alg)
        self.assertTrue(criterion.is_finished(alg))
        criterion.initialize()
        self.assertFalse(criterion.is_finished(alg))


class TestCompositeCriteria(unittest.TestCase):
    def test_or_truth_table(self):
        for a, b in itertools.product([False, True], repeat=2):
            criterion = stopping.OrStoppingCriterion(
                ConstantCriterion(a), ConstantCriterion(b))
            self.assertEqual(criterion.is_finished(FakeAlgorithm()), a or b)

    def test_and_truth_table(self):
        for a, b in itertools.product([False, True], repeat=2):
            criterion = stopping.AndStoppingCriterion(
                ConstantCriterion(a), ConstantCriterion(b))
            self.assertEqual(criterion.is_finished(FakeAlgorithm()), a and b)

    def test_both_parts_are_always_checked(self):
        for cls in [stopping.OrStoppingCriterion,
                    stopping.AndStoppingCriterion]:
            for a, b in itertools.product([False, True], repeat=2):
                first, second = ConstantCriterion(a), ConstantCriterion(b)
                cls(first, second).is_finished(FakeAlgorithm())
                self.assertEqual((first.checks, second.checks), (1, 1))

    def test_initialize_reaches_both_parts(self):
        first, second = ConstantCriterion(False), ConstantCriterion(False)
        stopping.OrStoppingCriterion(first, second).initialize()
        self.assertEqual((first.initializations, second.initializations),
                         (1, 1))


class TestDefaultCriterion(unittest.TestCase):
    def test_default_policy(self):
        conffile = os.path.join(tempfile.mkdtemp(), 'missing.json')
        env = {'LSOPT_CONF_FILE': conffile}
        with mock.patch.dict(os.environ, env, clear=True):
            criterion = stopping.default_stopping_criterion()
        self.assertIsInstance(criterion, stopping.OrStoppingCriterion)
        self.assertEqual(criterion.first.max_iterations, 20)
        self.assertEqual(criterion.second.threshold, 1000)

    def test_default_policy_from_environment(self):
        conffile = os.path.join(tempfile.mkdtemp(), 'missing.json')
        env = {'LSOPT_CONF_FILE': conffile, 'LSOPT_MAX_ITERATIONS': '7'}
        with mock.patch.dict(os.environ, env, clear=True):
            criterion = stopping.default_stopping_criterion()
        self.assertEqual(criterion.second.threshold, 7)


if __name__ == '__main__':
    unittest.main()
