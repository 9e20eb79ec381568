#!/usr/bin/env python3
"""
Quick Start - Minimal example to get started with markup evolution.

Evolves a plain fragment for a few generations and prints the best result.
Pass a path as the first argument to also seed from, and save into, a JSON
pattern store.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markup_evo import EvolutionConfig, EvolutionEngine, JsonPatternStore
from markup_evo.utils import setup_logger

setup_logger(level="INFO")

print("Markup Evolution - Quick Start")
print("="*40)

seed = """
<div class="game">
  <h2>Treasure Hunt</h2>
  <p>Find the hidden gems!</p>
</div>
"""

store = JsonPatternStore(sys.argv[1]) if len(sys.argv) > 1 else None

config = EvolutionConfig(
    population_size=12,   # organisms per generation
    max_generations=5,    # generation budget
    seed=42,              # reproducible run
)
engine = EvolutionEngine.with_defaults(config, pattern_store=store)

print("\nEvolving...")
result = engine.evolve(seed)

print(f"\nBest fitness: {result.best_fitness:.3f} "
      f"(generation {result.best_organism.generation})")
print(f"Applied patterns: {', '.join(sorted(result.best_organism.applied_patterns))}")
print("\nFitness by generation:")
for record in result.history:
    print(f"  gen {record.generation}: best={record.best_fitness:.3f} "
          f"avg={record.average_fitness:.3f}")

print("\nBest markup:\n")
print(result.best_organism.markup)
