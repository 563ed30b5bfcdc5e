"""API description parser -- load a document and normalise it.

This sub-package turns a raw RAML-style description (YAML or JSON, local file,
remote URL, or stdin) into an :class:`~routekit.models.ApiDescription` that the
route-tree builder can consume.

Typical usage::

    from routekit.parser import extract_description, load_description

    raw = await load_description("https://example.com/api.raml")
    description = extract_description(raw)

Sub-modules:

* :mod:`~routekit.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection.
* :mod:`~routekit.parser.extractor` -- Walks the document and produces the
  normalised AST.
"""

from routekit.parser.extractor import extract_description
from routekit.parser.loader import load_description

__all__ = ["load_description", "extract_description"]
