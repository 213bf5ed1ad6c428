import argparse
import logging

from . import config
from .asian import AsianOptionFunction
from .barrier import KnockOutBarrierOptionFunction
from .core import CALL, TrinomialTreeData, normalize_kind
from .functions import (
    AmericanVanillaOptionFunction,
    DigitalOptionFunction,
    EuropeanVanillaOptionFunction,
)
from .tree import price, tree_greeks

PRODUCTS = ("european", "american", "digital", "barrier", "asian")


def _kind(s: str):
    try:
        return normalize_kind(s)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def add_common(parser: argparse.ArgumentParser):
    tree = parser.add_argument_group("tree")
    tree.add_argument("--spot", type=float, required=True)
    tree.add_argument("--down", type=float, required=True, help="down factor")
    tree.add_argument("--middle", type=float, default=1.0, help="middle factor")
    tree.add_argument("--p-up", dest="p_up", type=float, required=True)
    tree.add_argument("--p-mid", dest="p_mid", type=float, required=True)
    tree.add_argument("--p-down", dest="p_down", type=float, required=True)
    tree.add_argument("--discount", type=float, required=True, help="per-step discount factor")
    tree.add_argument("--steps", type=int, required=True)

    opt = parser.add_argument_group("contract")
    opt.add_argument("--product", choices=PRODUCTS, default="european")
    opt.add_argument("--strike", type=float, required=True)
    opt.add_argument("--expiry", type=float, required=True, help="years")
    opt.add_argument("--kind", type=_kind, default=CALL, help="call|put")
    opt.add_argument("--barrier", type=float, default=None)
    opt.add_argument("--direction", choices=("down", "up"), default="down")
    opt.add_argument("--rebate", type=float, default=0.0)
    opt.add_argument("--payout", type=float, default=1.0)
    opt.add_argument("--averaging-points", dest="averaging_points", type=int,
                     default=config.DEFAULT_AVERAGING_POINTS)


def build_tree(args) -> TrinomialTreeData:
    return TrinomialTreeData.uniform(
        spot=args.spot,
        down_factor=args.down,
        middle_factor=args.middle,
        discount_factor=args.discount,
        up_probability=args.p_up,
        middle_probability=args.p_mid,
        down_probability=args.p_down,
        n_steps=args.steps,
    )


def build_function(args):
    if args.product == "european":
        return EuropeanVanillaOptionFunction(args.strike, args.expiry, args.kind)
    if args.product == "american":
        return AmericanVanillaOptionFunction(args.strike, args.expiry, args.kind)
    if args.product == "digital":
        return DigitalOptionFunction(args.strike, args.expiry, args.kind, payout=args.payout)
    if args.product == "barrier":
        if args.barrier is None:
            raise ValueError("--barrier is required for barrier options")
        return KnockOutBarrierOptionFunction(
            args.strike, args.expiry, args.kind, args.barrier,
            direction=args.direction, rebate=args.rebate,
        )
    return AsianOptionFunction(args.strike, args.expiry, args.kind,
                               averaging_points=args.averaging_points)


def cmd_price(args):
    px = price(build_function(args), build_tree(args))
    print(f"{px:.10f}")


def cmd_greeks(args):
    g = tree_greeks(build_function(args), build_tree(args))
    for key in ("price", "delta", "gamma", "theta"):
        print(f"{key:<6} {g[key]:.10f}")


def main(argv=None):
    p = argparse.ArgumentParser(prog="treepricer", description="Trinomial tree option pricer")
    p.add_argument("--log-level", dest="log_level", default="WARNING",
                   choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    sub = p.add_subparsers(dest="cmd", required=True)

    p_price = sub.add_parser("price", help="root-node price")
    add_common(p_price)
    p_price.set_defaults(func=cmd_price)

    p_greeks = sub.add_parser("greeks", help="price, delta, gamma, theta from the tree")
    add_common(p_greeks)
    p_greeks.set_defaults(func=cmd_greeks)

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level, format=config.DEFAULT_LOG_FORMAT)
    try:
        args.func(args)
    except ValueError as exc:
        p.exit(2, f"treepricer: error: {exc}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
