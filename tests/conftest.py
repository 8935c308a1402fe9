"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf

from pysumm import SurveyDesign, reset_default_digits, svyglm


@pytest.fixture(autouse=True)
def _clean_default_digits():
    """The process-wide digits default must not leak between tests."""
    reset_default_digits()
    yield
    reset_default_digits()


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def states(rng):
    """Cross-section shaped like R's state.x77: 50 rows, four regions."""
    n = 50
    frost = rng.uniform(0, 190, n)
    illiteracy = rng.uniform(0.5, 2.8, n)
    murder = 2.0 + 3.0 * illiteracy + rng.normal(0, 2.0, n)
    income = 4500 + 2.0 * frost - 300 * illiteracy + 40 * murder + rng.normal(0, 500, n)
    return pd.DataFrame({
        'Income': income,
        'Frost': frost,
        'Illiteracy': illiteracy,
        'Murder': murder,
        'Region': np.repeat(['Northeast', 'South', 'NorthCentral', 'West'],
                            [9, 16, 12, 13]),
        'Coastal': rng.integers(0, 2, n),
    })


@pytest.fixture
def ols_fit(states):
    return smf.ols('Income ~ Frost + Illiteracy + Murder', data=states).fit()


@pytest.fixture
def binary_data(rng):
    """Logistic-regression data with a moderate signal."""
    n = 400
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    eta = -0.3 + 0.8 * x1 - 0.5 * x2
    y = rng.binomial(1, 1.0 / (1.0 + np.exp(-eta)))
    return pd.DataFrame({'y': y, 'x1': x1, 'x2': x2, 'firm': np.repeat(np.arange(40), 10)})


@pytest.fixture
def logit_fit(binary_data):
    return smf.glm('y ~ x1 + x2', data=binary_data, family=sm.families.Binomial()).fit()


@pytest.fixture
def grouped_data(rng):
    """Random-intercept data: 30 groups of 10."""
    n_groups, per_group = 30, 10
    group = np.repeat(np.arange(n_groups), per_group)
    u = rng.normal(0, 1.5, n_groups)[group]
    x = rng.standard_normal(n_groups * per_group)
    z = rng.uniform(0, 10, n_groups * per_group)
    y = 1.0 + 2.0 * x + 0.3 * z + u + rng.normal(0, 1.0, n_groups * per_group)
    return pd.DataFrame({'y': y, 'x': x, 'z': z, 'g': group})


@pytest.fixture
def mixed_fit(grouped_data):
    return smf.mixedlm('y ~ x + z', data=grouped_data, groups='g').fit()


@pytest.fixture
def survey_data(rng):
    """Stratified two-stage sample: 4 strata x 6 PSUs x 15 respondents."""
    n_strata, psu_per, per_psu = 4, 6, 15
    n = n_strata * psu_per * per_psu
    stratum = np.repeat(np.arange(n_strata), psu_per * per_psu)
    psu = np.repeat(np.arange(psu_per * n_strata), per_psu) % psu_per
    x = rng.standard_normal(n)
    age = rng.uniform(18, 80, n)
    y = 2.0 + 1.5 * x + 0.05 * age + rng.normal(0, 1.0, n)
    eta = -0.5 + 0.7 * x
    return pd.DataFrame({
        'y': y,
        'x': x,
        'age': age,
        'voted': rng.binomial(1, 1.0 / (1.0 + np.exp(-eta))),
        'stratum': stratum,
        'psu': psu,
        'pw': rng.uniform(0.5, 3.0, n),
    })


@pytest.fixture
def survey_design(survey_data):
    return SurveyDesign(data=survey_data, weights='pw', ids='psu', strata='stratum')


@pytest.fixture
def survey_fit(survey_design):
    return svyglm('y ~ x + age', survey_design)
