from .visualizations import build_composition_charts

__all__ = ["build_composition_charts"]
