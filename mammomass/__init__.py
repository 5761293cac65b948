# mammomass/__init__.py

"""
mammomass: benign vs malignant prediction for mammographic masses.

Loads the mass records, imputes missing codes, explores the
distributions and fits decision trees with cross-validated cp.
"""

__version__ = "0.1.0"

from . import config, data, explore, impute, models, train, tuning
