"""Plot helpers write PNG and SVG files."""
import pytest

from mutation_adjacency.simulator.visualize import plot_bound_gap, plot_sweep
from mutation_adjacency.sweep import combine_tables, results_to_frame, sweep


@pytest.fixture
def table():
    sim = results_to_frame(sweep("next", 40, range(0, 10), 500, seed=0))
    bound = results_to_frame(sweep("heuristic", 40, range(0, 10)))
    return combine_tables(sim, bound)


def test_plot_sweep_saves_png_and_svg(table, tmp_path):
    plot_sweep(table, save_path=tmp_path / "out" / "sweep", title="n=40")
    assert (tmp_path / "out" / "sweep.png").exists()
    assert (tmp_path / "out" / "sweep.svg").exists()


def test_plot_bound_gap(table, tmp_path):
    plot_bound_gap(table, save_path=tmp_path / "gap")
    assert (tmp_path / "gap.png").exists()


def test_plot_bound_gap_needs_heuristic_rows(table, tmp_path):
    sim_only = table[table["type"] == "simulation"]
    with pytest.raises(ValueError):
        plot_bound_gap(sim_only, save_path=tmp_path / "gap")
