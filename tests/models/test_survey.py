"""
Tests for SurveyDesign and svyglm.

Point estimates equal a GLM with normalized sampling weights; the
design-based covariance is the Taylor linearization over PSUs with
stratum-centred totals.
"""

import warnings

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.tools.sm_exceptions import SpecificationWarning

from pysumm.core.capabilities import (
    CAPABILITY_CLUSTER_COVARIANCE,
    CAPABILITY_DESIGN_BASED_ERRORS,
    CAPABILITY_LOG_LINK,
    CAPABILITY_REFIT,
    CAPABILITY_SANDWICH,
)
from pysumm.core.exceptions import ValidationError
from pysumm.models import (
    SandwichParts,
    SurveyDesign,
    as_fitted_model,
    linearization_covariance,
    svyglm,
)


# ═══════════════════════════════════════════════════════════════════════
# SurveyDesign
# ═══════════════════════════════════════════════════════════════════════


class TestSurveyDesign:

    def test_psu_and_strata_counts(self, survey_design):
        assert survey_design.n == 360
        assert survey_design.n_strata == 4
        # PSU ids repeat across strata but are nested within them
        assert survey_design.n_psu == 24
        assert survey_design.degrees_of_freedom() == 20

    def test_no_ids_means_one_psu_per_row(self, survey_data):
        design = SurveyDesign(data=survey_data, weights='pw')
        assert design.n_psu == 360
        assert design.n_strata == 1

    def test_array_inputs(self, survey_data):
        design = SurveyDesign(
            data=survey_data,
            weights=survey_data['pw'].to_numpy(),
            ids=survey_data['psu'].to_numpy(),
        )
        assert design.n_psu == 6

    def test_missing_column(self, survey_data):
        design = SurveyDesign(data=survey_data, weights='nope')
        with pytest.raises(ValidationError, match="'nope' not found"):
            design.weight_values()

    def test_nonpositive_weights(self, survey_data):
        w = survey_data['pw'].to_numpy().copy()
        w[0] = 0.0
        design = SurveyDesign(data=survey_data, weights=w)
        with pytest.raises(ValidationError, match="positive"):
            design.weight_values()

    def test_weight_length_mismatch(self, survey_data):
        design = SurveyDesign(data=survey_data, weights=np.ones(10))
        with pytest.raises(ValidationError, match="expected 360 entries"):
            design.weight_values()

    def test_with_data_keeps_design(self, survey_design, survey_data):
        moved = survey_design.with_data(survey_data.assign(x=survey_data['x'] * 2))
        assert moved.n_psu == survey_design.n_psu
        assert moved.data is not survey_design.data


# ═══════════════════════════════════════════════════════════════════════
# svyglm
# ═══════════════════════════════════════════════════════════════════════


class TestSvyglm:

    def test_point_estimates_match_weighted_glm(self, survey_fit, survey_data):
        w = survey_data['pw'].to_numpy()
        reference = smf.glm('y ~ x + age', data=survey_data, var_weights=w / w.mean()).fit()
        np.testing.assert_allclose(survey_fit.params.to_numpy(), reference.params.to_numpy())

    def test_default_family_is_gaussian(self, survey_fit):
        assert type(survey_fit.family).__name__ == 'Gaussian'

    def test_binomial(self, survey_design):
        fit = svyglm('voted ~ x', survey_design, family=sm.families.Binomial())
        adapter = as_fitted_model(fit)
        assert adapter.family_name == 'binomial'
        assert adapter.supports(CAPABILITY_LOG_LINK)

    def test_one_stratum_matches_cluster_sandwich(self, survey_data):
        # statsmodels scales by G/(G-1) * (N-1)/(N-K), linearization by G/(G-1)
        data = survey_data.assign(cluster=survey_data['stratum'] * 6 + survey_data['psu'])
        design = SurveyDesign(data=data, weights='pw', ids='cluster')
        fit = svyglm('y ~ x + age', design)

        w = data['pw'].to_numpy()
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', SpecificationWarning)
            reference = smf.glm(
                'y ~ x + age', data=data, var_weights=w / w.mean()
            ).fit(cov_type='cluster', cov_kwds={'groups': design.psu_codes()})
        n, k = 360, 3
        np.testing.assert_allclose(
            as_fitted_model(fit).covariance(),
            reference.cov_params().to_numpy() * (n - k) / (n - 1),
            rtol=1e-6,
        )

    def test_strata_enter_the_variance(self, survey_fit, survey_data):
        data = survey_data.assign(cluster=survey_data['stratum'] * 6 + survey_data['psu'])
        unstratified = svyglm('y ~ x + age', SurveyDesign(data=data, weights='pw', ids='cluster'))
        np.testing.assert_allclose(survey_fit.params, unstratified.params)
        assert not np.allclose(survey_fit.bse, unstratified.bse, rtol=1e-4)

    def test_single_psu_stratum_rejected(self, survey_data):
        stratum = np.where(survey_data['psu'] == 0, 99, survey_data['stratum'])
        design = SurveyDesign(
            data=survey_data.assign(stratum=stratum), weights='pw', ids='psu', strata='stratum',
        )
        with pytest.raises(ValidationError, match="single PSU"):
            svyglm('y ~ x + age', design)

    def test_strata_without_ids(self, survey_data):
        design = SurveyDesign(data=survey_data, weights='pw', strata='stratum')
        fit = svyglm('y ~ x + age', design)
        assert np.all(np.isfinite(fit.bse))
        assert design.degrees_of_freedom() == 356

    def test_no_specification_warning(self, survey_design):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            svyglm('y ~ x + age', survey_design)
        assert not [w for w in caught if issubclass(w.category, SpecificationWarning)]


class TestLinearizationCovariance:
    """Four one-row PSUs with unit bread, so the meat is the covariance."""

    @pytest.fixture
    def parts(self):
        return SandwichParts(
            X=np.ones((4, 1)),
            score=np.array([1.0, 2.0, 3.0, 5.0]),
            working_weights=np.ones(4),
            bread=np.eye(1),
        )

    @pytest.fixture
    def frame(self):
        return pd.DataFrame({'psu': [0, 1, 0, 1], 'stratum': ['a', 'a', 'b', 'b'], 'w': 1.0})

    def test_centred_within_strata(self, parts, frame):
        design = SurveyDesign(data=frame, weights='w', ids='psu', strata='stratum')
        # stratum a: totals 1, 2 -> 2/1 * (0.25 + 0.25) = 1
        # stratum b: totals 3, 5 -> 2/1 * (1 + 1) = 4
        np.testing.assert_allclose(linearization_covariance(parts, design), [[5.0]])

    def test_unstratified(self, parts, frame):
        design = SurveyDesign(data=frame, weights='w')
        # mean 2.75, squared deviations sum to 8.75, times 4/3
        np.testing.assert_allclose(linearization_covariance(parts, design), [[35.0 / 3.0]])


class TestSurveyAdapter:

    def test_capabilities(self, survey_fit):
        adapter = as_fitted_model(survey_fit)
        assert adapter.supports(CAPABILITY_DESIGN_BASED_ERRORS)
        assert adapter.supports(CAPABILITY_REFIT)
        assert not adapter.supports(CAPABILITY_SANDWICH)
        assert not adapter.supports(CAPABILITY_CLUSTER_COVARIANCE)

    def test_design_degrees_of_freedom(self, survey_fit):
        # 24 PSUs - 4 strata + 1 - 3 coefficients
        assert as_fitted_model(survey_fit).df_resid == 18.0

    def test_gaussian_fit_statistics(self, survey_fit):
        labels = [s.label for s in as_fitted_model(survey_fit).fit_statistics()]
        assert labels == ['R²', 'Adj. R²', 'Dispersion']

    def test_binomial_fit_statistics(self, survey_design):
        fit = svyglm('voted ~ x', survey_design, family=sm.families.Binomial())
        labels = [s.label for s in as_fitted_model(fit).fit_statistics()]
        assert labels == ['Pseudo-R² (McFadden)', 'Dispersion']

    def test_refit_on_new_frame(self, survey_fit, survey_data):
        refit = as_fitted_model(survey_fit).refit(survey_data.copy())
        np.testing.assert_allclose(refit.coefficients, survey_fit.params.to_numpy())
        assert refit.source == 'pysumm.svyglm'
