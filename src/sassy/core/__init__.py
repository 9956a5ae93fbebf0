"""Sassy core: parsing, merging, resolution, analysis and emission of themes."""
