# File: bedfilter/__init__.py
# Location: bedfilter/bedfilter/__init__.py

"""
bedfilter Package.

This package filters large line-oriented genomic record files (VCF, SNP tables)
down to the lines whose chromosome and position appear in a BED-like
coordinate file, using a concurrent streaming pipeline.
"""

from .version import __version__
