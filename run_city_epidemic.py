#!/usr/bin/env python3
"""Run the default city epidemic and print a summary.

Runs the scenario in configs/default.yaml (optionally merged with a
scenario override), prints a daily compartment table, runs a few sanity
checks and optionally writes host snapshots for replay.

Usage:
    python3 run_city_epidemic.py
    python3 run_city_epidemic.py configs/no_hospital.yaml
    python3 run_city_epidemic.py --days 30 --snapshots results/snapshots.npz
"""

import argparse
import sys
import time
import warnings
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from episim.config import build_model, load_config
from episim.errors import LookupMiss
from episim.results import ResultSeries
from episim.snapshots import SnapshotRecorder
from episim.types import Compartment, Demographic, LandUse


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════

BASE_CONFIG = project_root / "configs" / "default.yaml"
TICKS_PER_REPORT_ROW = 24     # one row per simulated day at hourly steps


# ═══════════════════════════════════════════════════════════════════════
# RUN SIMULATION
# ═══════════════════════════════════════════════════════════════════════

def run_simulation(config, n_ticks, recorder=None):
    """Build and run the model, printing progress once per simulated day."""
    print("=" * 72)
    print("EpiSim: city epidemic")
    print("=" * 72)
    print()

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", LookupMiss)
        model = build_model(config)
    misses = sum(1 for w in caught if issubclass(w.category, LookupMiss))

    print(f"City: {len(model.get_places())} places, {len(model.get_hosts())} hosts")
    for land_use in LandUse:
        n = len(model.get_places_by_use(land_use))
        if n:
            print(f"  {land_use.name:<9} {n:4d}")
    by_demo = {d: 0 for d in Demographic}
    for host in model.get_hosts():
        by_demo[host.demographic] += 1
    print("  " + ", ".join(f"{d.name.lower()}={n}" for d, n in by_demo.items()))
    if misses:
        print(f"  ({misses} hosts fell back to their dwelling as secondary place)")
    beds = config.simulation.hospital_beds
    print(f"Hospital beds: {'unlimited' if beds is None else beds}")
    print(f"Seed: {config.simulation.seed}, ticks: {n_ticks} × {model.time_step!r}")
    print()

    results = ResultSeries()
    t0 = time.time()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LookupMiss)
        for tick in range(n_ticks):
            model.update()
            results.record(model)
            if recorder is not None:
                recorder.capture(model)
            if (tick + 1) % TICKS_PER_REPORT_ROW == 0:
                elapsed = time.time() - t0
                rate = elapsed / (tick + 1)
                eta = rate * (n_ticks - tick - 1)
                print(f"  Day {(tick + 1) // TICKS_PER_REPORT_ROW:3d}  "
                      f"elapsed={elapsed:.0f}s  eta={eta:.0f}s", flush=True)

    elapsed = time.time() - t0
    print()
    print(f"Simulation complete in {elapsed:.1f}s")
    print()
    return model, results


# ═══════════════════════════════════════════════════════════════════════
# VERIFICATION CHECKS
# ═══════════════════════════════════════════════════════════════════════

def verify_results(model, results):
    """Sanity checks on a finished run.

    Returns (passed, failed) lists of check descriptions.
    """
    passed = []
    failed = []
    n_hosts = len(model.get_hosts())

    for pathogen in model.get_pathogens():
        series = results.compartment_series(pathogen.name)
        totals = sum(series[c] for c in Compartment)
        if np.all(totals == n_hosts):
            passed.append(f"[{pathogen.name}] compartments sum to {n_hosts} every tick ✓")
        else:
            failed.append(f"[{pathogen.name}] compartment totals drift: "
                          f"{totals.min()}..{totals.max()} vs {n_hosts}")

        susceptible = series[Compartment.SUSCEPTIBLE]
        if np.all(np.diff(susceptible) <= 0):
            passed.append(f"[{pathogen.name}] susceptible count never increases ✓")
        else:
            failed.append(f"[{pathogen.name}] susceptible count increased")

        dead = series[Compartment.DEAD_TREATED] + series[Compartment.DEAD_UNTREATED]
        if np.all(np.diff(dead) >= 0):
            passed.append(f"[{pathogen.name}] deaths are cumulative ✓")
        else:
            failed.append(f"[{pathogen.name}] death count decreased")

    if all(agent.is_alive for agent in model.get_agents()):
        passed.append(f"All {len(model.get_agents())} registered agents are alive ✓")
    else:
        failed.append("Expired agents left in the registry")

    beds = model.hospital_beds
    peak_hosp = int(results.series('hospitalized').max()) if len(results) else 0
    if beds is None or peak_hosp <= beds:
        passed.append(f"Peak hospitalized {peak_hosp} within capacity ✓")
    else:
        failed.append(f"Peak hospitalized {peak_hosp} exceeds {beds} beds")

    return passed, failed


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("scenario", nargs="?", default=None,
                        help="Scenario YAML merged over configs/default.yaml")
    parser.add_argument("--days", type=float, default=None,
                        help="Override the run length in days (hourly ticks)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--snapshots", default=None,
                        help="Write daily host snapshots to this .npz path")
    args = parser.parse_args(argv)

    overrides = {}
    if args.seed is not None:
        overrides.setdefault('simulation', {})['seed'] = args.seed
    config = load_config(BASE_CONFIG, args.scenario, overrides or None)
    n_ticks = config.simulation.n_ticks
    if args.days is not None:
        n_ticks = int(round(args.days * 24 / config.simulation.time_step))

    recorder = None
    if args.snapshots:
        recorder = SnapshotRecorder(enabled=True, interval_ticks=TICKS_PER_REPORT_ROW)

    model, results = run_simulation(config, n_ticks, recorder)
    print(results.report(every=TICKS_PER_REPORT_ROW))

    print("─── Verification Checks ───")
    print()
    passed, failed = verify_results(model, results)
    for line in passed:
        print(f"  PASS  {line}")
    for line in failed:
        print(f"  FAIL  {line}")
    print()
    print(f"{len(passed)} passed, {len(failed)} failed")

    if recorder is not None:
        recorder.save(args.snapshots)
        print(f"Snapshots: {len(recorder.get_ticks())} written to {args.snapshots} "
              f"(~{recorder.memory_estimate_mb():.2f} MB)")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
