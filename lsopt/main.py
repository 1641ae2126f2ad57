import argparse

import numpy as np

import lsopt
from lsopt import conf
from lsopt.logger import log
from lsopt.robust import ROBUST_FUNCTIONS, get_robust_function

desc = """
lsopt, a nonlinear least-squares optimization engine. Fits the parameters of
a vector-valued model to a list of samples with Gauss-Newton,
Levenberg-Marquardt or gradient descent iterations.
"""


def action_conf():
    conf.create_default_conf()
    log.info('Wrote default configuration to {}'.format(
        conf.get_conf_filename()))


def action_example(damping=None, iterations=None, robust='identity',
                   robust_scale=1.0, seed=0):
    """Fits a Gaussian to noisy synthetic samples with Levenberg-Marquardt
    and returns the algorithm after the run."""
    from lsopt.models import GaussianFunction
    from lsopt.opt.algorithms import LevenbergMarquardtAlgorithm
    from lsopt.opt import stopping

    cf = conf.load_conf()
    damping = cf['damping'] if damping is None else damping
    iterations = cf['max-iterations'] if iterations is None else iterations

    rng = np.random.RandomState(seed)
    truth = GaussianFunction(a=2.0, b=0.5, c=0.8)
    xs = np.linspace(-3, 3, 50)
    ys = []
    for x in xs:
        truth.set_input(x)
        ys.append(truth.get_output() + 0.05 * rng.randn(1, 1))

    criterion = stopping.OrStoppingCriterion(
        stopping.MaximumIterationsWithoutImprovementStoppingCriterion(
            cf['max-iterations-without-improvement']),
        stopping.IterationThresholdStoppingCriterion(iterations))
    alg = LevenbergMarquardtAlgorithm.from_function(
        GaussianFunction(a=1.0, b=0.0, c=1.0), list(xs), targets=ys,
        robust_function=get_robust_function(robust, k=robust_scale),
        stopping_criterion=criterion, damping=damping)
    alg.initialize()
    log.info('Fitting a Gaussian to {} samples, initial cost {:.6g}'.format(
        len(xs), alg.error_best))
    alg.iterate()
    a, b, c = alg.solution_best[:, 0]
    log.info('best: a={:.4f}, b={:.4f}, c={:.4f} (true 2.0, 0.5, 0.8), '
             'cost {:.6g} at iteration {}'.format(
                 a, b, c, alg.error_best, alg.iteration_best))
    return alg


def main(argv=None):
    parser = argparse.ArgumentParser(description=desc)
    parser.add_argument('--version', action='version',
        version='lsopt ' + lsopt.__version__)
    sub = parser.add_subparsers()

    # shared arguments between the actions
    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("-g", "--debug", action='store_true',
        help="run with debugging logs and information")
    shared.add_argument("-v", "--verbose", action='count', default=0,
        help="set the verbosity of log messages")

    # the sub actions that can be performed
    parse_conf = sub.add_parser(name='conf', parents=[shared],
        help="Write the default configuration file")
    parse_example = sub.add_parser(name='example', parents=[shared],
        help="Fit a Gaussian to synthetic data with Levenberg-Marquardt")

    parse_conf.set_defaults(action='conf')
    parse_example.set_defaults(action='example')

    # custom actions for each particular action
    parse_example.add_argument("--damping", type=float, default=None,
        help="""Levenberg-Marquardt damping factor, >= 0.
        (default: from configuration)""", metavar='')
    parse_example.add_argument("--iterations", type=int, default=None,
        help="""Maximum number of iterations.
        (default: from configuration)""", metavar='')
    parse_example.add_argument("--robust", default='identity',
        choices=sorted(ROBUST_FUNCTIONS.keys()),
        help="robust function applied to each squared residual")
    parse_example.add_argument("--robust-scale", type=float, default=1.0,
        help="scale of the robust function (default: 1.0)", metavar='')

    args = vars(parser.parse_args(argv))

    if args.get("debug"):
        log.set_verbosity('vvvvv')
    elif args.get("verbose"):
        log.set_verbosity('v' * min(args['verbose'], 5))

    if args.get('action') == "conf":
        action_conf()
    elif args.get('action') == "example":
        action_example(
            damping=args['damping'], iterations=args['iterations'],
            robust=args['robust'], robust_scale=args['robust_scale'])
    else:
        parser.print_help()
    return 0
