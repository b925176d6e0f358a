import os
import time
import logging
import numpy as np
import pandas as pd
import multiprocessing as mp
from tqdm import tqdm
from lsolver.config import SolverConfig
from lsolver.dataset import make_graph, load_graph, random_demand, signed_demand
from lsolver.model import QueueSolver, canonical_solution
from lsolver.sampler import UniformSampler
from lsolver.utils import Timer, residual, exact_solution
import argparse

parser = argparse.ArgumentParser(description='Configuration file')
arg_lists = []
def add_argument_group(name):
    arg = parser.add_argument_group(name)
    arg_lists.append(arg)
    return arg

def str2bool(v):
    return v.lower() in ('true', '1')

def int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

## General parameters
gen_arg = add_argument_group('General')
gen_arg.add_argument('--seed', type=int_or_none, default=111, help='random seed')
gen_arg.add_argument('--root', type=str, default=None, help='root directory')
gen_arg.add_argument('--data_dir', type=str, default='data', help='data directory')
gen_arg.add_argument('--out_dir', type=str, default='test', help='output directory')
gen_arg.add_argument('--net_name', type=str, default='grid', help='path, cycle, grid, random, or a directory under data_dir with node.csv/link.csv')
gen_arg.add_argument('--size', type=int, default=4, help='number of vertices (side length for grid)')
gen_arg.add_argument('--weight', type=str, default=None, help='weight column of link.csv')
gen_arg.add_argument('--log_level', type=str, default='INFO', help='logging level')

# Demand
demand_arg = add_argument_group('Demand')
demand_arg.add_argument('--signed', type=str2bool, default=False, help='if draw mixed-sign demand or sources only')
demand_arg.add_argument('--n_sources', type=int, default=None, help='number of source vertices')

# Solver parameters
model_arg = add_argument_group('Model')
model_arg.add_argument('--e1', type=float, default=0.1, help='stability tolerance e1')
model_arg.add_argument('--e2', type=float, default=0.1, help='stability tolerance e2')
model_arg.add_argument('--k', type=float, default=0.1, help='accuracy constant')
model_arg.add_argument('--initial_beta', type=float, default=0.5, help='first beta candidate')
model_arg.add_argument('--epoch_length', type=int, default=1000, help='steps per epoch')
model_arg.add_argument('--max_epochs', type=int, default=2000, help='epoch cap per simulation')
model_arg.add_argument('--drift_tol', type=float, default=1e-3, help='throughput drift threshold')
model_arg.add_argument('--warmup_epochs', type=int, default=0, help='epochs discarded before counting')
model_arg.add_argument('--max_halvings', type=int, default=50, help='maximum number of beta candidates')

# Experiment
exp_arg = add_argument_group('Experiment')
exp_arg.add_argument('--n_trials', type=int, default=5, help='number of independent solves')
exp_arg.add_argument('--parallel', type=str2bool, default=False, help='if run trials in parallel or not')

def get_config():
    config, unparsed = parser.parse_known_args()
    return config, unparsed

def solver_config(config):
    return SolverConfig(
        e1=config.e1, e2=config.e2, k=config.k,
        initial_beta=config.initial_beta,
        epoch_length=config.epoch_length,
        max_epochs=config.max_epochs,
        drift_tol=config.drift_tol,
        warmup_epochs=config.warmup_epochs,
        max_halvings=config.max_halvings,
    )

def run_trial(params):
    # both canonical forms share one simulation (same child stream)
    trial, g, b, sconfig, sampler, x_exact = params
    timer = Timer()
    solver = QueueSolver(sconfig, sampler=sampler)
    x, beta = solver.solve(g, b)
    runtime = timer.stop()
    x_zstar = np.zeros_like(x)
    for (sign, bk), eta, bt in zip(solver.parts, solver.eta, solver.betas):
        x_zstar += sign * canonical_solution(eta, bt, g.degree_vector(), bk, method='zstar')
    return {
        'trial': trial,
        'beta': beta,
        'n_runs': sum(len(h) for h in solver.beta_hist),
        'res_center': residual(g, b, x),
        'res_zstar': residual(g, b, x_zstar),
        'err_exact': float(np.sqrt(np.mean((x - x_exact) ** 2))),
        'runtime': runtime,
    }

# %%
if __name__ == '__main__':
    config, _ = get_config()
    logging.basicConfig(level=getattr(logging, config.log_level.upper()),
                        format='%(asctime)s - %(levelname)s - %(message)s')
    logger = logging.getLogger(__name__)

    ## output directory
    if config.root is not None:
        out_dir = os.path.join(config.root, "results", config.net_name, config.out_dir)
    else:
        out_dir = os.path.join("results", config.net_name, config.out_dir)
    if os.path.exists(out_dir):
        out_dir = out_dir + '_' + time.strftime("%Y%m%dT%H%M")
    os.makedirs(out_dir)
    logger.info("Run %s", out_dir)

    ## network
    if config.net_name in ('path', 'cycle', 'grid', 'random'):
        g = make_graph(config.net_name, config.size, seed=config.seed)
    else:
        data_dir = os.path.join(config.data_dir, config.net_name)
        g = load_graph(os.path.join(data_dir, 'node.csv'), os.path.join(data_dir, 'link.csv'), weight=config.weight)
    n = g.num_vertices()
    logger.info("Graph with %d vertices and %d links", n, g.adjacency_matrix().nnz // 2)

    ## demand
    if config.signed:
        b = signed_demand(n, seed=config.seed)
    else:
        b = random_demand(n, seed=config.seed, n_sources=config.n_sources)
    x_exact = exact_solution(g, b)

    ## trials
    sconfig = solver_config(config)
    samplers = UniformSampler(config.seed).spawn(config.n_trials)
    argsList = [[i, g, b, sconfig, samplers[i], x_exact] for i in range(config.n_trials)]
    if config.parallel:
        pool = mp.Pool(min(config.n_trials, mp.cpu_count()))
        outputs = list(tqdm(pool.imap(run_trial, argsList), total=config.n_trials))
        pool.close()
        pool.join()
    else:
        outputs = [run_trial(args) for args in tqdm(argsList)]

    df = pd.DataFrame(outputs).set_index('trial')
    print(df)
    print(df[['beta', 'res_center', 'res_zstar', 'err_exact', 'runtime']].describe())
    # canonical forms disagree beyond sampling noise
    gap = (df['res_zstar'] - df['res_center']).abs().mean()
    if gap > df['res_center'].std() + 1e-12:
        logger.warning("z* and centered residuals differ by %.4f on average", gap)
    df.to_csv(os.path.join(out_dir, 'trials.csv'), index=True)
    pd.Series(sconfig.to_dict()).to_csv(os.path.join(out_dir, 'config.csv'), header=False)
