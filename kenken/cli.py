"""Command-line interface for the KenKen generator and solver."""

import argparse
import json
import logging
import os
import string
import sys
from typing import List, Sequence

from .core.definitions import CageDefinition, build_cages, definitions_to_json, puzzles_from_json
from .core.exceptions import GenerationFailedError, InvalidConfigurationError, KenKenError
from .core.grid import Grid
from .generator import Difficulty, PuzzleGenerator
from .solvers import DEFAULT_MAX_SOLUTIONS, BacktrackingSolver, solve_definitions
from .utils.logger import configure_logging

DIFFICULTY_CHOICES = ["easy", "medium", "hard"]


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="KenKen Puzzle Generator & Backtracking Solver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate 3 medium 5x5 puzzles
  python -m kenken.cli generate --size 5 --difficulty medium --count 3

  # Solve a saved puzzle, listing up to 10 solutions
  python -m kenken.cli solve --puzzle puzzle.json --max-solutions 10

  # Benchmark every supported configuration
  python -m kenken.cli benchmark --puzzles 5 --output results/
        """
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Generate KenKen puzzles")
    gen_parser.add_argument(
        "--size", "-N", type=int, default=4,
        help="Grid size, 3 to 6 (default: 4)"
    )
    gen_parser.add_argument(
        "--difficulty", "-d", choices=DIFFICULTY_CHOICES, default="easy",
        help="Difficulty level (default: easy)"
    )
    gen_parser.add_argument(
        "--count", "-n", type=int, default=1,
        help="Number of puzzles to generate (default: 1)"
    )
    gen_parser.add_argument(
        "--output", "-o", type=str, default=None,
        help="Output file for puzzles (JSON format)"
    )
    gen_parser.add_argument(
        "--render", "-r", type=str, default=None,
        help="Directory to write PNG renderings of each puzzle"
    )
    gen_parser.add_argument(
        "--seed", "-s", type=int, default=None,
        help="Random seed for reproducibility"
    )

    # Solve command
    solve_parser = subparsers.add_parser("solve", help="Solve a KenKen puzzle")
    solve_parser.add_argument(
        "--puzzle", "-p", type=str, required=True,
        help='Puzzle JSON file: {"size": N, "cages": [...]}'
    )
    solve_parser.add_argument(
        "--index", "-i", type=int, default=1,
        help="Puzzle to load from a batch file, 1-based (default: 1)"
    )
    solve_parser.add_argument(
        "--max-solutions", "-m", type=int, default=1,
        help=f"Maximum solutions to list (default: 1, negative: {DEFAULT_MAX_SOLUTIONS})"
    )
    solve_parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Print solver statistics"
    )

    # Render command
    render_parser = subparsers.add_parser("render", help="Render a puzzle to PNG")
    render_parser.add_argument(
        "--puzzle", "-p", type=str, required=True,
        help="Puzzle JSON file"
    )
    render_parser.add_argument(
        "--index", "-i", type=int, default=1,
        help="Puzzle to load from a batch file, 1-based (default: 1)"
    )
    render_parser.add_argument(
        "--output", "-o", type=str, default="puzzle.png",
        help="Output image path (default: puzzle.png)"
    )
    render_parser.add_argument(
        "--with-solution", action="store_true",
        help="Fill in the first solution found"
    )

    # Benchmark command
    bench_parser = subparsers.add_parser("benchmark", help="Benchmark generation and solving")
    bench_parser.add_argument(
        "--sizes", type=int, nargs="+", default=None,
        help="Grid sizes to benchmark (default: 3 4 5 6)"
    )
    bench_parser.add_argument(
        "--difficulty", "-d", choices=DIFFICULTY_CHOICES + ["all"], default="all",
        help="Difficulty to benchmark (default: all)"
    )
    bench_parser.add_argument(
        "--puzzles", "-n", type=int, default=5,
        help="Puzzles per configuration (default: 5)"
    )
    bench_parser.add_argument(
        "--output", "-o", type=str, default="results",
        help="Output directory for results (default: results)"
    )
    bench_parser.add_argument(
        "--seed", "-s", type=int, default=42,
        help="Random seed for reproducibility (default: 42)"
    )
    bench_parser.add_argument(
        "--memory", action="store_true",
        help="Track solver peak memory (slower)"
    )
    bench_parser.add_argument(
        "--no-charts", action="store_true",
        help="Skip chart generation"
    )

    args = parser.parse_args(argv)
    configure_logging(getattr(logging, args.log_level))

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "generate":
            cmd_generate(args)
        elif args.command == "solve":
            cmd_solve(args)
        elif args.command == "render":
            cmd_render(args)
        elif args.command == "benchmark":
            cmd_benchmark(args)
    except InvalidConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)
    except GenerationFailedError as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        sys.exit(1)
    except KenKenError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def format_puzzle(definitions: Sequence[CageDefinition], size: int) -> str:
    """
    ASCII rendering: one letter per cage laid out on the grid, then a legend.
    """
    labels = string.ascii_uppercase + string.ascii_lowercase
    layout = [["?"] * size for _ in range(size)]
    legend = []
    for index, definition in enumerate(definitions):
        label = labels[index % len(labels)]
        for r, c in definition.cells:
            layout[r][c] = label
        legend.append(f"  {label}: {definition}")

    lines = [" ".join(row) for row in layout]
    return "\n".join(lines + [""] + legend)


def _load_puzzle(path: str, index: int = 1):
    """Load puzzle ``index`` (1-based) from a single-puzzle or batch file."""
    try:
        with open(path) as f:
            text = f.read()
    except OSError as e:
        raise KenKenError(f"Cannot read puzzle file {path}: {e}") from e

    puzzles = puzzles_from_json(text)
    if not 1 <= index <= len(puzzles):
        raise InvalidConfigurationError(
            f"Puzzle index {index} out of range; {path} holds {len(puzzles)} puzzle(s)"
        )
    return puzzles[index - 1]


def cmd_generate(args):
    """Handle the generate command."""
    generator = PuzzleGenerator(seed=args.seed)
    difficulty = Difficulty.parse(args.difficulty)

    all_puzzles: List[dict] = []
    print(f"Generating {args.count} {args.size}x{args.size} {difficulty.value} puzzle(s)...")

    for i in range(1, args.count + 1):
        definitions = generator.generate(args.size, difficulty)
        verification = generator.last_verification
        all_puzzles.append({
            "index": i,
            "difficulty": difficulty.value,
            **json.loads(definitions_to_json(definitions, args.size)),
        })

        print(f"\n--- Puzzle {i} ({len(definitions)} cages, "
              f"{generator.last_attempts} attempt(s), "
              f"{verification.solutions_found} solution(s) found) ---")
        print(format_puzzle(definitions, args.size))

        if args.render:
            from .benchmark.visualizer import render_puzzle
            path = os.path.join(args.render, f"puzzle_{args.size}x{args.size}_{i}.png")
            render_puzzle(definitions, args.size, path)
            print(f"Rendered to {path}")

    if args.output:
        payload = all_puzzles[0] if len(all_puzzles) == 1 else {"puzzles": all_puzzles}
        with open(args.output, "w") as f:
            json.dump(payload, f, indent=2)
        print(f"\nPuzzles saved to {args.output}")


def cmd_solve(args):
    """Handle the solve command."""
    size, definitions = _load_puzzle(args.puzzle, args.index)

    print("Input puzzle:")
    print(format_puzzle(definitions, size))
    print()

    grid = Grid(size)
    solver = BacktrackingSolver(grid, build_cages(grid, definitions), size)
    solutions = solver.solve(args.max_solutions)

    if args.verbose:
        stats = solver.stats
        print(f"Time: {stats.time_seconds:.4f}s")
        print(f"Nodes explored: {stats.nodes_explored}")
        print(f"Backtracks: {stats.backtracks}")
        print(f"Rejected candidates: {stats.rejected_candidates}")
        print()

    if not solutions:
        print("✗ No solution")
        return

    print(f"✓ {len(solutions)} solution(s) found")
    for i, solution in enumerate(solutions, 1):
        print(f"\nSolution {i}:")
        print(solution)


def cmd_render(args):
    """Handle the render command."""
    from .benchmark.visualizer import render_puzzle

    size, definitions = _load_puzzle(args.puzzle, args.index)
    solution = None
    if args.with_solution:
        solutions = solve_definitions(definitions, size, max_solutions=1)
        solution = solutions[0] if solutions else None
        if solution is None:
            print("No solution found; rendering the empty puzzle")

    render_puzzle(definitions, size, args.output, solution=solution)
    print(f"Rendered to {args.output}")


def cmd_benchmark(args):
    """Handle the benchmark command."""
    from .benchmark import Benchmark
    from .benchmark.visualizer import Visualizer

    difficulties = list(Difficulty) if args.difficulty == "all" else [Difficulty.parse(args.difficulty)]

    benchmark = Benchmark(
        sizes=args.sizes,
        difficulties=difficulties,
        puzzles_per_config=args.puzzles,
        track_memory=args.memory,
        seed=args.seed
    )

    print("=" * 60)
    print("KENKEN GENERATOR BENCHMARK")
    print("=" * 60)
    print(f"Puzzles per configuration: {args.puzzles}")
    print(f"Configurations: {', '.join(f'{s}x{s} {d.value}' for s, d in benchmark.configurations)}")
    print(f"Output directory: {args.output}")
    print("=" * 60)

    results = benchmark.run()
    summary = benchmark.get_summary()

    print("\nBy Configuration:")
    print("-" * 50)
    for label, stats in summary["results_by_configuration"].items():
        print(f"\n{label}:")
        print(f"  Generated: {stats['generated']}/{stats['tested']}")
        print(f"  Avg Generation Time: {stats['avg_generation_seconds']:.4f}s")
        print(f"  Avg Attempts: {stats['avg_attempts']:.2f}")
        if "avg_solve_seconds" in stats:
            print(f"  Avg Solve Time: {stats['avg_solve_seconds']:.4f}s")
            print(f"  Unique Solutions: {stats['unique_solutions']}")

    benchmark.save_results(args.output)

    if not args.no_charts:
        print("\nGenerating charts...")
        charts = Visualizer(results, args.output).generate_all()
        for chart in charts:
            print(f"  - {os.path.basename(chart)}")

    print("\n" + "=" * 60)
    print("Benchmark complete!")


if __name__ == "__main__":
    main()
