"""Benchmark module for the KenKen generator and solver."""

from .benchmark import Benchmark, BenchmarkResult, supported_configurations
from .visualizer import Visualizer, render_puzzle

__all__ = ["Benchmark", "BenchmarkResult", "supported_configurations", "Visualizer", "render_puzzle"]
