# ==================================================================================================
#
#   Batch Validator for Chroma Lab Levels
#
#   Version: 1.0.0
#
# --------------------------------------------------------------------------------------------------
#
#   Overview:
#   Checks many levels at once and reports whether each one is solvable. The campaign
#   levels and/or a run of seeded generated levels are spread over a pool of worker
#   processes. Every level goes through the backtracking search and, optionally, through
#   the Z3 cross-check; the two verdicts must agree.
#
#   Generated levels use the seeds 'batch_<difficulty>_<i>', so any reported failure can
#   be reproduced with:  python -m chromalab.level_generator --difficulty D --seed SEED
#
# ==================================================================================================

import argparse
import logging
import multiprocessing
import os
import time
from typing import NamedTuple, Optional

from tqdm import tqdm

from chromalab import campaign_levels
from chromalab.constants import FALLBACK_SEED, MIN_DIFFICULTY, SOLVER_TIMEOUT_MS
from chromalab.level_generator import generate_level
from chromalab.level_solver import format_duration, is_level_solvable
from chromalab.models import SolveStatus
from chromalab.z3_solver import Z3LevelSolver


class ValidationJob(NamedTuple):
    label: str
    campaign_number: Optional[int] = None
    seed: Optional[str] = None
    difficulty: int = MIN_DIFFICULTY
    use_z3: bool = False
    timeout_ms: int = SOLVER_TIMEOUT_MS


class ValidationResult(NamedTuple):
    label: str
    search_status: Optional[str]
    z3_status: Optional[str] = None
    fallback: bool = False
    error: Optional[str] = None

    @property
    def ok(self):
        if self.error or self.search_status != SolveStatus.SOLVED.value:
            return False
        return self.z3_status in (None, SolveStatus.SOLVED.value)


def build_jobs(campaign, generate, difficulty, use_z3, timeout_ms):
    jobs = []
    if campaign:
        for number in range(1, campaign_levels.get_total_levels() + 1):
            jobs.append(ValidationJob(f"campaign {number}", campaign_number=number,
                                      use_z3=use_z3, timeout_ms=timeout_ms))
    for i in range(generate):
        seed = f"batch_{difficulty}_{i}"
        jobs.append(ValidationJob(seed, seed=seed, difficulty=difficulty,
                                  use_z3=use_z3, timeout_ms=timeout_ms))
    return jobs


def validate_level_worker(job):
    """
    Executed by each worker process: builds the job's level and runs the solvers on it.
    A failure is reported in the result instead of crashing the worker.
    """
    try:
        if job.campaign_number is not None:
            level = campaign_levels.get_level(job.campaign_number)
            if level is None:
                return ValidationResult(job.label, None, error="no such campaign level")
        else:
            level = generate_level(job.difficulty, job.seed)

        search = is_level_solvable(level.target_board, level.pieces, job.timeout_ms)
        z3_status = None
        if job.use_z3:
            z3_status = Z3LevelSolver(level.target_board, level.pieces).solve(job.timeout_ms).status.value
        return ValidationResult(job.label, search.status.value, z3_status,
                                fallback=level.seed == FALLBACK_SEED and job.seed != FALLBACK_SEED)
    except Exception as e:
        logging.error(f"Validation of {job.label} failed: {e}")
        return ValidationResult(job.label, None, error=str(e))


def summarize(results):
    failures = [r for r in results if not r.ok]
    disagreements = [
        r for r in results
        if r.z3_status is not None and r.search_status is not None
        and SolveStatus.UNPROVEN.value not in (r.search_status, r.z3_status)
        and r.search_status != r.z3_status
    ]
    return {
        'total': len(results),
        'passed': len(results) - len(failures),
        'failures': sorted(failures, key=lambda r: r.label),
        'disagreements': sorted(disagreements, key=lambda r: r.label),
        'fallbacks': sorted(r.label for r in results if r.fallback),
    }


def run_jobs(jobs, workers):
    results = []
    with multiprocessing.Pool(processes=workers) as pool:
        results_iterator = pool.imap_unordered(validate_level_worker, jobs)
        try:
            for result in tqdm(results_iterator, total=len(jobs), desc="Validating Levels"):
                results.append(result)
        except KeyboardInterrupt:
            print("\n\033[94m[INFO]\033[0m User interrupt received. Terminating workers...")
            pool.terminate()
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description="Validate Chroma Lab levels using multiple workers.")
    parser.add_argument("--campaign", action='store_true', help="Validate every campaign level.")
    parser.add_argument("--generate", type=int, default=0, help="Number of seeded levels to generate and validate.")
    parser.add_argument("--difficulty", type=int, default=MIN_DIFFICULTY, help="Difficulty of generated levels.")
    parser.add_argument("--workers", type=int, default=os.cpu_count(),
                        help="Number of parallel worker processes (default: all available cores).")
    parser.add_argument("--timeout-ms", type=int, default=SOLVER_TIMEOUT_MS, help="Solver budget per level.")
    parser.add_argument("--z3", action='store_true', help="Cross-check every level with the Z3 solver.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(message)s')

    jobs = build_jobs(args.campaign or not args.generate, args.generate, args.difficulty, args.z3, args.timeout_ms)
    start_time = time.time()
    summary = summarize(run_jobs(jobs, args.workers))

    print("\n" + "=" * 50)
    print("\033[95m*** COMPLETED ***\033[0m")
    print(f"{summary['passed']}/{summary['total']} levels proven solvable.")
    for result in summary['failures']:
        reason = result.error or f"search={result.search_status}, z3={result.z3_status}"
        print(f"\033[91m[FAIL]\033[0m {result.label}: {reason}")
    for result in summary['disagreements']:
        print(f"\033[93m[WARN]\033[0m {result.label}: solvers disagree "
              f"(search={result.search_status}, z3={result.z3_status})")
    for label in summary['fallbacks']:
        print(f"\033[93m[WARN]\033[0m {label}: generation fell back to the simple level")
    print(f"\033[90m[TIME]\033[0m Total elapsed time: {format_duration(time.time() - start_time)}")
    print("=" * 50)
    return 0 if not summary['failures'] else 1


if __name__ == "__main__":
    multiprocessing.freeze_support()
    raise SystemExit(main())
