"""flowgraph: node/port/connection graph model with Bézier connection routing."""

__version__ = "0.1.0"
