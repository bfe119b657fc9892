"""
shadergraph: the graph data model behind a visual GLSL shader editor.

Nodes (source code fragments, constants, operators) and typed edges form a
canonical graph that an external compiler turns into GLSL. This package owns
that graph, its structural-edit algorithms, and the visual projection kept
in step with it.
"""

__version__ = "0.1.0"
