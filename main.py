# main.py
import json
import logging
import os

import click

from cache import CacheError
from recency import POLICIES
from simulator import simulate, save_results
from tracefile import read_trace, write_trace, TraceFileError
from visualize import plot_hit_miss_rate, plot_outcome_counts
from workload import generate_trace

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

EXAMPLES = """
Examples:
  linux>  cachesim -s 4 -E 1 -b 4 -t traces/trace01.dat
  linux>  cachesim -v -s 8 -E 2 -b 4 -t traces/trace01.dat
"""


def load_config(path="config.json"):
    with open(path, "r") as f:
        return json.load(f)


def setup_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def _pick(value, section, key):
    return value if value is not None else section.get(key)


@click.command(context_settings=CONTEXT_SETTINGS, epilog=EXAMPLES)
@click.option("-v", "verbose", is_flag=True, help="Optional verbose flag.")
@click.option("-s", "set_bits", type=int, help="Number of set index bits.")
@click.option("-E", "associativity", type=int, help="Number of lines per set.")
@click.option("-b", "block_bits", type=int, help="Number of block offset bits.")
@click.option("-t", "trace_path", type=click.Path(), help="Trace file.")
@click.option("--policy", type=click.Choice(sorted(POLICIES)), default=None,
              help="Replacement policy (default: counter).")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON config file; command line options take precedence.")
@click.option("--results-dir", type=click.Path(file_okay=False), default=None,
              help="Write summary.json into this directory.")
@click.option("--plot", is_flag=True, help="Save hit/miss plots next to the results.")
@click.option("--log-level", default=None, help="Logging level (default: WARNING).")
@click.pass_context
def main(ctx, verbose, set_bits, associativity, block_bits, trace_path, policy,
         config_path, results_dir, plot, log_level):
    """Simulate a set-associative cache with LRU replacement against a memory trace."""
    cfg = load_config(config_path) if config_path else {}
    setup_logging(log_level or cfg.get("logging", {}).get("level", "WARNING"))

    cache_cfg = cfg.get("cache", {})
    out_cfg = dict(cfg.get("output", {}))
    s = _pick(set_bits, cache_cfg, "s")
    E = _pick(associativity, cache_cfg, "E")
    b = _pick(block_bits, cache_cfg, "b")
    policy = policy or cache_cfg.get("replacement", "counter")
    trace_path = trace_path or cfg.get("trace")
    workload_cfg = cfg.get("workload")

    if None in (s, E, b) or (trace_path is None and workload_cfg is None):
        click.echo(ctx.get_help())
        ctx.exit(0)

    try:
        if trace_path is not None:
            records = read_trace(trace_path)
        else:
            try:
                records = generate_trace(**workload_cfg)
            except TypeError as exc:
                raise ValueError("bad workload config: %s" % exc) from exc
            logger.info("generated %d synthetic records", len(records))
        result = simulate(s, E, b, records, policy=policy, verbose=verbose)
    except (CacheError, TraceFileError, ValueError) as exc:
        click.echo("Error: %s" % exc, err=True)
        ctx.exit(1)

    click.echo(str(result))

    if results_dir is not None:
        out_cfg["results_dir"] = results_dir
    if results_dir is not None or plot:
        geometry = {"s": s, "E": E, "b": b, "replacement": policy}
        path = save_results(result, out_cfg, geometry)
        logger.info("results saved to %s", path)
    if plot:
        base = out_cfg.get("results_dir", "results")
        plot_hit_miss_rate(result, out_cfg.get("hitmiss_plot", os.path.join(base, "hit_miss_rate.png")))
        plot_outcome_counts(result, out_cfg.get("outcome_plot", os.path.join(base, "outcomes.png")))


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False), required=True,
              help="Trace file to write.")
@click.option("-n", "--num-requests", type=int, default=1000, show_default=True)
@click.option("--pattern", "access_pattern", type=click.Choice(["sequential", "random", "mixed"]),
              default="mixed", show_default=True)
@click.option("--read-ratio", type=float, default=0.8, show_default=True)
@click.option("--modify-ratio", type=float, default=0.0, show_default=True)
@click.option("--working-set", "working_set_bytes", type=int, default=64 * 1024, show_default=True)
@click.option("--size", "access_size", type=int, default=8, show_default=True)
@click.option("--seed", "random_seed", type=int, default=None)
def generate(output_path, num_requests, access_pattern, read_ratio, modify_ratio,
             working_set_bytes, access_size, random_seed):
    """Write a synthetic data-access trace."""
    try:
        records = generate_trace(
            num_requests=num_requests,
            access_pattern=access_pattern,
            read_ratio=read_ratio,
            modify_ratio=modify_ratio,
            working_set_bytes=working_set_bytes,
            access_size=access_size,
            random_seed=random_seed,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    write_trace(records, output_path)
    click.echo("wrote %d records to %s" % (len(records), output_path))


if __name__ == "__main__":
    main()
