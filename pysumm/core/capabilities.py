"""
Capability string constants for pysumm.

This module is the SINGLE SOURCE OF TRUTH for capability strings.
Import from here, never use raw strings.

Usage:
    from pysumm.core.capabilities import CAPABILITY_REFIT

    if model.supports(CAPABILITY_REFIT):
        scaled = model.refit(frame)
"""

# Model can be re-estimated on a transformed copy of its data
CAPABILITY_REFIT = 'refit'

# Fixed-effects design matrix and term-to-column mapping are available
CAPABILITY_DESIGN_MATRIX = 'design_matrix'

# Bread, scores and working weights for HC sandwich covariance
CAPABILITY_SANDWICH = 'sandwich'

# Cluster-robust covariance can be computed from the fitted results
CAPABILITY_CLUSTER_COVARIANCE = 'cluster_covariance'

# Standard errors are already design-based (survey linearization)
CAPABILITY_DESIGN_BASED_ERRORS = 'design_based_errors'

# Link function is log or logit, so exponentiated coefficients are ratios
CAPABILITY_LOG_LINK = 'log_link'

# Per-coefficient denominator degrees of freedom are available
CAPABILITY_DF_APPROXIMATION = 'df_approximation'

# Random-effect variance components are available
CAPABILITY_RANDOM_EFFECTS = 'random_effects'

ALL_CAPABILITIES = frozenset({
    CAPABILITY_REFIT,
    CAPABILITY_DESIGN_MATRIX,
    CAPABILITY_SANDWICH,
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_DESIGN_BASED_ERRORS,
    CAPABILITY_LOG_LINK,
    CAPABILITY_DF_APPROXIMATION,
    CAPABILITY_RANDOM_EFFECTS,
})

__all__ = [
    'CAPABILITY_REFIT',
    'CAPABILITY_DESIGN_MATRIX',
    'CAPABILITY_SANDWICH',
    'CAPABILITY_CLUSTER_COVARIANCE',
    'CAPABILITY_DESIGN_BASED_ERRORS',
    'CAPABILITY_LOG_LINK',
    'CAPABILITY_DF_APPROXIMATION',
    'CAPABILITY_RANDOM_EFFECTS',
    'ALL_CAPABILITIES',
]
