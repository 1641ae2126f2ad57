import unittest

import numpy as np

from lsopt.exceptions import ConfigurationError
from lsopt.functions import CallableFunction
from lsopt.robust import IdentityRobustFunction, CauchyRobustFunction
from lsopt.opt import loss, opttest

TOLS = {'atol': 1e-11, 'rtol': 1e-11}
SOFTTOLS = {'atol': 1e-7, 'rtol': 1e-7}


def make_linear_loss(cls=loss.SquaredErrorFromTargets, counting=False,
                     **kwargs):
    np.random.seed(0)
    inputs, targets, _ = opttest.make_linear_problem(nsamples=6, dof=3)
    function = opttest.LinearFunction(np.zeros(3))
    if counting:
        function = opttest.CountingFunction(function)
    return cls(function, inputs, targets=targets, **kwargs), inputs, targets


def stacked(inputs, targets, theta):
    J = np.vstack(inputs)
    f = np.dot(J, theta) - np.vstack(targets)
    return f, J


class TestLossCache(unittest.TestCase):
    def test_recompute_only_when_stale(self):
        calls = []

        def compute():
            calls.append(1)
            return 1.0, 2.0, 3.0

        cache = loss.LossCache()
        self.assertFalse(cache.valid)
        cache.recompute_if_stale(compute)
        cache.recompute_if_stale(compute)
        self.assertEqual(len(calls), 1)
        self.assertTrue(cache.valid)
        self.assertEqual((cache.cost, cache.gradient, cache.hessian),
                         (1.0, 2.0, 3.0))

        cache.invalidate()
        cache.recompute_if_stale(compute)
        self.assertEqual(len(calls), 2)


class TestSquaredErrorLoss(unittest.TestCase):
    def test_repeated_reads_do_not_evaluate(self):
        lss, inputs, _ = make_linear_loss(counting=True)
        lss.initialize()
        function = lss.function
        self.assertEqual(function.output_calls, len(inputs))
        self.assertEqual(function.jacobian_calls, len(inputs))

        cost, gradient, hessian = lss.cost, lss.gradient, lss.hessian
        for _ in range(3):
            self.assertEqual(lss.cost, cost)
            self.assertIs(lss.gradient, gradient)
            self.assertIs(lss.hessian, hessian)
        self.assertEqual(function.output_calls, len(inputs))
        self.assertEqual(function.jacobian_calls, len(inputs))

    def test_changes_invalidate(self):
        lss, inputs, targets = make_linear_loss(counting=True)
        n = len(inputs)
        lss.initialize()
        lss.shift(0.1 * np.ones((3, 1)))
        lss.cost
        self.assertEqual(lss.function.output_calls, 2 * n)

        lss.set_parameters(np.zeros((3, 1)))
        lss.gradient
        self.assertEqual(lss.function.output_calls, 3 * n)

        lss.set_targets([2 * t for t in targets])
        lss.hessian
        self.assertEqual(lss.function.output_calls, 4 * n)

        lss.set_robust_function(CauchyRobustFunction(1.0))
        lss.cost
        self.assertEqual(lss.function.output_calls, 5 * n)

    def test_cost_gradient_hessian(self):
        lss, inputs, targets = make_linear_loss()
        theta = np.array([[0.3], [-1.2], [2.0]])
        lss.set_parameters(theta)
        f, J = stacked(inputs, targets, theta)
        self.assertTrue(np.isclose(lss.cost, np.sum(f*f), **TOLS))
        self.assertTrue(np.allclose(lss.gradient, np.dot(J.T, f), **TOLS))
        self.assertTrue(np.allclose(lss.hessian, np.dot(J.T, J), **TOLS))
        self.assertTrue(np.allclose(lss.residuals, f, **TOLS))
        self.assertTrue(np.allclose(lss.jacobian, J, **TOLS))
        self.assertTrue(np.all(lss.row_weights == 1.0))

    def test_mean_divides_by_number_of_samples(self):
        total, inputs, _ = make_linear_loss()
        mean, _, _ = make_linear_loss(cls=loss.MeanSquaredErrorFromTargets)
        n = len(inputs)
        self.assertTrue(np.isclose(mean.cost, total.cost / n, **TOLS))
        self.assertTrue(np.allclose(mean.gradient, total.gradient / n, **TOLS))
        self.assertTrue(np.allclose(mean.hessian, total.hessian / n, **TOLS))

    def test_mean_squared_error_without_targets(self):
        function = opttest.LinearFunction([2.0])
        inputs = [np.array([[1.0]]), np.array([[3.0]])]
        lss = loss.MeanSquaredError(function, inputs)
        self.assertTrue(np.isclose(lss.cost, (4.0 + 36.0) / 2, **TOLS))

    def test_weights(self):
        np.random.seed(0)
        inputs, targets, _ = opttest.make_linear_problem(nsamples=4, dof=2)
        weights = [0.5, 2.0, 0.0, 1.0]
        function = opttest.LinearFunction([1.0, -1.0])
        lss = loss.WeightedSquaredError(function, inputs, weights,
                                        targets=targets)
        theta = function.get_parameters()
        costs = [w * np.sum((np.dot(A, theta) - y)**2)
                 for A, y, w in zip(inputs, targets, weights)]
        self.assertTrue(np.isclose(lss.cost, sum(costs), **TOLS))

        expected = sum([w * np.dot(A.T, A) for A, w in zip(inputs, weights)])
        self.assertTrue(np.allclose(lss.hessian, expected, **TOLS))

    def test_identity_robust_is_bit_identical(self):
        plain, _, _ = make_linear_loss()
        robust, _, _ = make_linear_loss(
            cls=loss.SquaredErrorLoss,
            robust_function=IdentityRobustFunction())
        for lss in [plain, robust]:
            lss.set_parameters(np.array([[0.1], [0.2], [-0.3]]))
        self.assertEqual(plain.cost, robust.cost)
        self.assertTrue(np.array_equal(plain.gradient, robust.gradient))
        self.assertTrue(np.array_equal(plain.hessian, robust.hessian))

    def test_named_robust_loss_with_identity(self):
        np.random.seed(1)
        inputs, targets, _ = opttest.make_linear_problem(nsamples=5, dof=2)
        plain = loss.SquaredErrorFromTargets(
            opttest.LinearFunction([0.5, 0.5]), inputs, targets)
        robust = loss.RobustSquaredError(
            opttest.LinearFunction([0.5, 0.5]), inputs,
            IdentityRobustFunction(), targets=targets)
        self.assertEqual(plain.cost, robust.cost)
        self.assertTrue(np.array_equal(plain.gradient, robust.gradient))
        self.assertTrue(np.array_equal(plain.hessian, robust.hessian))

    def test_robust_downweights_outlier(self):
        inputs = [np.array([[x, 1.0]]) for x in range(6)]
        targets = [np.array([[2.0 * x + 1]]) for x in range(6)]
        targets[3] = targets[3] + 50.0
        function = opttest.LinearFunction([2.0, 1.0])
        lss = loss.RobustMeanSquaredError(
            function, inputs, CauchyRobustFunction(1.0), targets=targets)
        w = lss.row_weights[:, 0]
        self.assertTrue(np.allclose(w[[0, 1, 2, 4, 5]], 0.5, **TOLS))
        self.assertLess(w[3], 1e-3)
        # the bounded cost grows only logarithmically with the outlier
        self.assertLess(lss.cost, 50.0**2 / 6)

    def test_target_count_mismatch(self):
        lss, inputs, targets = make_linear_loss()
        lss.set_targets(targets[:-1])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_weight_count_mismatch(self):
        lss, inputs, _ = make_linear_loss(cls=loss.SquaredErrorLoss,
                                          weights=[1.0, 2.0])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_no_inputs(self):
        lss = loss.MeanSquaredError(opttest.LinearFunction([1.0]), [])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_output_must_be_a_column(self):
        function = CallableFunction(
            lambda x, th: np.ones((1, 2)), lambda x, th: np.ones((1, 2)),
            [1.0, 2.0])
        # CallableFunction reshapes outputs; bypass it
        function.get_output = lambda: np.ones((1, 2))
        lss = loss.MeanSquaredError(function, [0.0])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_parameters_must_be_a_column(self):
        function = opttest.LinearFunction([1.0, 2.0])
        function.set_parameters(np.array([1.0, 2.0]))
        lss = loss.MeanSquaredError(function, [np.eye(2)])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_jacobian_shape_mismatch(self):
        function = CallableFunction(
            lambda x, th: x * th[0], lambda x, th: np.ones((2, 1)), [1.0])
        lss = loss.MeanSquaredError(function, [1.0, 2.0])
        self.assertRaises(ConfigurationError, lss.initialize)

    def test_degrees_of_freedom_fixed_after_initialize(self):
        lss, _, _ = make_linear_loss()
        lss.initialize()
        lss.set_parameters(np.zeros((2, 1)))
        with self.assertRaises(ConfigurationError):
            lss.cost

    def test_reconfiguring_reallocates(self):
        lss, inputs, targets = make_linear_loss()
        lss.initialize()
        self.assertEqual(lss.residuals.shape, (3 * len(inputs), 1))
        lss.set_inputs(inputs[:2])
        lss.set_targets(targets[:2])
        lss.initialize()
        self.assertEqual(lss.residuals.shape, (6, 1))
        self.assertEqual(lss.jacobian.shape, (6, 3))

    def test_shift_delegates_to_function(self):
        lss, _, _ = make_linear_loss()
        lss.shift(np.array([[1.0], [2.0], [3.0]]))
        self.assertTrue(np.allclose(lss.get_parameters(), [[1], [2], [3]]))
        self.assertEqual(lss.degrees_of_freedom(), 3)


class TestReferenceProblems(unittest.TestCase):
    def test_zero_cost_at_true_parameters(self):
        for name, problem in opttest.ALL_FUNCTIONS.items():
            lss = opttest.make_reference_loss(name, problem['true-params'])
            self.assertTrue(np.isclose(lss.cost, 0, atol=1e-15), msg=name)

    def test_analytic_jacobians(self):
        dl = 1e-6
        for name, problem in opttest.ALL_FUNCTIONS.items():
            p0 = problem['true-params'] + 0.1
            f0 = problem['function'](p0)
            numeric = np.zeros((f0.size, p0.size))
            for i in range(p0.size):
                dp = np.zeros(p0.size)
                dp[i] = dl
                numeric[:, i] = (problem['function'](p0 + dp) - f0) / dl
            analytic = problem['jacobian'](p0)
            self.assertTrue(np.allclose(numeric, analytic, atol=1e-4),
                            msg=name)


class TestNormSquaredLoss(unittest.TestCase):
    def test_quantities(self):
        lss = loss.NormSquaredLoss([3.0, -4.0])
        self.assertTrue(np.isclose(lss.cost, 25.0, **TOLS))
        self.assertTrue(np.allclose(lss.gradient, [[3.0], [-4.0]], **TOLS))
        self.assertTrue(np.allclose(lss.hessian, np.eye(2), **TOLS))

    def test_shift_invalidates(self):
        lss = loss.NormSquaredLoss([3.0, -4.0])
        lss.cost
        lss.shift(np.array([[-3.0], [4.0]]))
        self.assertTrue(np.isclose(lss.cost, 0.0, **TOLS))


if __name__ == '__main__':
    unittest.main()
