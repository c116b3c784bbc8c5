"""Gorgon static blog generator.

This package turns a directory of markdown posts with YAML frontmatter into a
static HTML site. Images referenced from posts are transcoded into responsive
``<picture>`` elements backed by a content-addressed static asset store.

The main entry point is the CLI module, which exposes the ``build`` command.

Pipeline, leaves first:
- assets: content-hash asset store
- images: image transcoder
- renderers: markdown rewriter that swaps images for <picture> markup
- extractors / content: post loading
- build: pipeline driver
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
