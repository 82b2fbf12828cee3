"""
Narrated data stories over public-sector salary and tuition tables.

The package drives a single shared scene through an ordered sequence of
narrative steps (average lines, reference highlight, all entries, rescale,
top-K filter) and layers hover tooltips and a live name search on top.

Key components:
- data: typed Records, column mappings, normalization, CSV loading
- features: per-entity aggregates (mean, max, top-K, reference lookup)
- scene: scales, axes, render clock, diff/join scene graph, SVG output
- story: step table, narration, step controller, story objects
- interaction: hover comparison tooltips and search highlighting
- renderers: standalone HTML export of a story
"""

__version__ = "0.1.0"
