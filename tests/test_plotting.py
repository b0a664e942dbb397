import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from airbnb_eda.build_report import build_report_tables
from airbnb_eda.config import load_config
from airbnb_eda.errors import JoinGapWarning
from airbnb_eda.plotting import plot_breakdown, plot_neighbourhood_map, render_figures


@pytest.fixture()
def tables(listings, reviews, neighbourhoods, waterways):
    with pytest.warns(JoinGapWarning):
        return build_report_tables(listings, reviews, neighbourhoods, waterways, load_config(TOP_K_REVIEWERS=2))


def test_render_figures_smoke(tables, neighbourhoods, tmp_path):
    """Every figure is rendered from the derived tables and written to disk."""
    written = render_figures(tables, str(tmp_path / "figures"), neighbourhoods=neighbourhoods, dpi=50)

    names = sorted(os.path.basename(p) for p in written)
    assert names == sorted([
        "neighbourhoods_all.png", "neighbourhoods_reviewed.png", "neighbourhood_comparison.png",
        "categories_and_hosts.png", "reviewer_A.png", "reviewer_B.png", "comment_lengths.png",
    ])
    for path in written:
        assert os.path.getsize(path) > 0


def test_map_with_empty_summary(tables, neighbourhoods):
    fig, ax = plt.subplots()
    plot_neighbourhood_map(tables["neighbourhoods_all"].iloc[0:0], "avg_price", ax, neighbourhoods=neighbourhoods)
    assert ax.get_title() == "Average price per night ($)"
    plt.close(fig)


def test_breakdown_with_no_reviews(tables):
    fig, ax = plt.subplots()
    plot_breakdown(tables["reviewer_A_accommodates"].iloc[0:0], "accommodates", ax, "Reviews per capacity")
    assert ax.get_title() == "Reviews per capacity"
    plt.close(fig)


def test_importing_plotting_leaves_backend_alone(monkeypatch):
    """Notebook users keep their own backend; only the report command picks one."""
    import importlib

    import airbnb_eda.plotting

    calls = []
    monkeypatch.setattr(matplotlib, "use", lambda *args, **kwargs: calls.append(args))
    importlib.reload(airbnb_eda.plotting)
    assert calls == []


@pytest.mark.parametrize("extra_args, expected_calls", [([], [("Agg",)]), (["--no-figures"], [])])
def test_main_selects_file_backend_only_for_figures(monkeypatch, tmp_path, extra_args, expected_calls):
    from airbnb_eda import build_report

    calls = []
    monkeypatch.setattr(build_report.matplotlib, "use", lambda *args, **kwargs: calls.append(args))
    monkeypatch.setattr(build_report, "run_report", lambda config, render=True: {})
    assert build_report.main(["--output-path", str(tmp_path)] + extra_args) == 0
    assert calls == expected_calls
