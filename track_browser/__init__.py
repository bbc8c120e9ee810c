"""
Top-level package for the genomic track browser.

This package exposes the core architecture (group hierarchy, data flow,
sample command engine). Most code should import from submodules such as:
    track_browser.core
    track_browser.data
    track_browser.samples
    track_browser.view
"""

__all__: list[str] = []
