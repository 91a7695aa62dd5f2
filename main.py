"""
main.py — Entry Point
======================
Runs the dye simulation live, headless, or as a benchmark.

Usage:
    python main.py --mode live                 # Interactive window
    python main.py                             # Headless scripted stir (default)
    python main.py --mode benchmark            # Per-pass timing breakdown
    python main.py --mode headless --workers 4 --iterations 20
"""

import argparse
import math
import numpy as np


def _make_sim(args, verbose: bool = True):
    from dyeflow import Simulator
    return Simulator(width=args.width, height=args.height, verbose=verbose,
                     relaxation_iterations=args.iterations,
                     workers=args.workers,
                     measured_dt=args.measured_dt)


def _stir(sim, f: int):
    """Scripted pointer: circle around the centre, pouring dye then pushing."""
    w, h = sim.grid.width, sim.grid.height
    angle = f * 0.08
    x = w / 2 + 0.25 * w * math.cos(angle)
    y = h / 2 + 0.25 * h * math.sin(angle)
    if f % 60 == 0:
        sim.pointer.release()
        sim.pointer.press(1 if (f // 60) % 2 == 0 else 0, x, y)
    else:
        sim.pointer.move(x, y)


def run_live(args):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({args.width}x{args.height})...")
    print("Left-drag pushes, right-drag pours dye, 'm' toggles view. Close the window to exit.\n")

    sim = _make_sim(args)
    viz = FluidVisualizer(sim)
    viz.run(fps=args.fps)


def run_headless(args):
    """Run simulation without display, printing stats every 10 frames."""
    print(f"\nHeadless simulation | {args.width}x{args.height} | {args.frames} frames")
    print(f"{'─'*60}")

    total_times = []
    with _make_sim(args) as sim:
        for f in range(args.frames):
            _stir(sim, f)
            metrics = sim.step()
            total_times.append(metrics["total_ms"])

            if f % 10 == 0:
                print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                      f"({metrics['fps']:.1f} FPS) | "
                      f"div_max={metrics['divergence_max']:.5f} | "
                      f"dye={metrics['dye_total']:.1f} | "
                      f"flips={metrics['flips']}")
        sim.print_status()

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")


def run_benchmark(args):
    """Detailed performance breakdown: how long each pass takes."""
    print(f"\n{'='*60}")
    print(f"  BENCHMARK | {args.width}x{args.height} | {args.frames} frames | "
          f"{args.workers} worker(s) | {args.iterations} relaxations")
    print(f"{'='*60}")

    with _make_sim(args, verbose=False) as sim:
        # Warm up
        for f in range(5):
            _stir(sim, f)
            sim.step()

        logs = []
        for f in range(args.frames):
            _stir(sim, f)
            logs.append(sim.step())

    keys = ["advect_ms", "relax_ms", "project_ms", "total_ms"]

    print(f"\n{'Pass':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    total_vals = [m["total_ms"] for m in logs]
    budget_ms = 1000.0 / args.fps
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")
    print(f"  Frame budget at {args.fps:.0f} Hz: {budget_ms:.1f}ms")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="2D Dye-in-Fluid Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--width",      type=int,   default=128, help="Grid width in cells (default: 128)")
    parser.add_argument("--height",     type=int,   default=128, help="Grid height in cells (default: 128)")
    parser.add_argument("--frames",     type=int,   default=100, help="Number of frames")
    parser.add_argument("--iterations", type=int,   default=10,  help="Pressure relaxations per tick (default: 10)")
    parser.add_argument("--workers",    type=int,   default=1,   help="Threads per pass (default: 1)")
    parser.add_argument("--fps",        type=float, default=60,  help="Target tick rate (default: 60)")
    parser.add_argument("--measured-dt", action="store_true",
                        help="Use wall-clock tick length for pointer velocity")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()

    if args.mode == "live":
        run_live(args)
    elif args.mode == "headless":
        run_headless(args)
    elif args.mode == "benchmark":
        run_benchmark(args)
