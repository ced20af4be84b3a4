"""
Core Exceedance Components
==========================

This package contains the enterococci exceedance modelling pipeline:

- ExceedancePipeline: end-to-end load, feature, split, fit and evaluate run
- DataProcessor: loading, validation and the weather join
- CategoryVocabulary: explicit categorical levels shared across partitions
"""

from .pipeline import ExceedancePipeline
from .data_processor import DataProcessor
from .vocabulary import CategoryVocabulary

__all__ = ['ExceedancePipeline', 'DataProcessor', 'CategoryVocabulary']
