"""
Tests for summ() on generalized linear models.
"""

import numpy as np
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats

from pysumm import summ
from pysumm.core.exceptions import ConfigurationError


class TestLogit:

    def test_z_inference(self, logit_fit):
        result = summ(logit_fit)
        rows = result.unrounded
        assert result.info['statistic'] == 'z'
        assert result.info['df'] is None
        np.testing.assert_allclose([r.std_error for r in rows], logit_fit.bse)
        np.testing.assert_allclose([r.p_value for r in rows], logit_fit.pvalues)

    def test_model_info(self, logit_fit):
        info = summ(logit_fit).model_info
        assert info['Family'] == 'binomial'
        assert info['Link'] == 'logit'
        assert info['Standard errors'] == 'MLE'

    def test_fit_statistics(self, logit_fit):
        fit = summ(logit_fit).model_fit_unrounded
        assert list(fit) == [
            'χ²', 'Pseudo-R² (Cragg-Uhler)', 'Pseudo-R² (McFadden)', 'AIC', 'BIC',
        ]
        assert fit['AIC'] == pytest.approx(logit_fit.aic)


class TestOddsRatios:

    def test_exponentiated(self, logit_fit):
        rows = summ(logit_fit, odds_ratio=True).unrounded
        ci = logit_fit.conf_int().to_numpy()
        np.testing.assert_allclose([r.estimate for r in rows], np.exp(logit_fit.params))
        np.testing.assert_allclose([r.conf_low for r in rows], np.exp(ci[:, 0]))
        np.testing.assert_allclose([r.conf_high for r in rows], np.exp(ci[:, 1]))

    def test_std_error_dropped_statistic_kept(self, logit_fit):
        rows = summ(logit_fit, odds_ratio=True).unrounded
        assert all(r.std_error is None for r in rows)
        np.testing.assert_allclose([r.statistic for r in rows], logit_fit.tvalues)
        np.testing.assert_allclose([r.p_value for r in rows], logit_fit.pvalues)

    def test_intervals_forced_on(self, logit_fit):
        rows = summ(logit_fit, odds_ratio=True, confint=False).rows
        assert all(r.conf_low is not None for r in rows)

    def test_exp_alias(self, logit_fit):
        assert summ(logit_fit, exp=True).unrounded == summ(logit_fit, odds_ratio=True).unrounded

    def test_ratio_bounds_positive(self, logit_fit):
        for row in summ(logit_fit, odds_ratio=True).unrounded:
            assert 0 < row.conf_low < row.estimate < row.conf_high

    def test_poisson_rate_ratios(self, binary_data):
        fit = smf.glm('y ~ x1', data=binary_data, family=sm.families.Poisson()).fit()
        rows = summ(fit, odds_ratio=True).unrounded
        np.testing.assert_allclose([r.estimate for r in rows], np.exp(fit.params))

    def test_identity_link_rejected(self, states):
        fit = smf.glm('Income ~ Frost', data=states).fit()
        with pytest.raises(ConfigurationError) as exc_info:
            summ(fit, odds_ratio=True)
        assert exc_info.value.family == 'generalized-linear'
        assert 'identity' in str(exc_info.value)


class TestGaussianGLM:

    def test_t_reference_with_residual_df(self, states):
        fit = smf.glm('Income ~ Frost + Murder', data=states).fit()
        result = summ(fit)
        assert result.info['statistic'] == 't'
        rows = result.unrounded
        expected = 2.0 * stats.t.sf(np.abs([r.statistic for r in rows]), 47)
        np.testing.assert_allclose([r.p_value for r in rows], expected)


class TestRobustGLM:

    def test_hc0_matches_statsmodels(self, binary_data):
        formula = 'y ~ x1 + x2'
        fit = smf.glm(formula, data=binary_data, family=sm.families.Binomial()).fit()
        reference = smf.glm(
            formula, data=binary_data, family=sm.families.Binomial()
        ).fit(cov_type='HC0')
        rows = summ(fit, robust='HC0').unrounded
        np.testing.assert_allclose([r.std_error for r in rows], reference.bse, rtol=1e-6)

    def test_cluster_matches_statsmodels(self, binary_data):
        formula = 'y ~ x1 + x2'
        fit = smf.glm(formula, data=binary_data, family=sm.families.Binomial()).fit()
        reference = smf.glm(
            formula, data=binary_data, family=sm.families.Binomial()
        ).fit(cov_type='cluster', cov_kwds={'groups': binary_data['firm'].to_numpy()})
        rows = summ(fit, robust=True, cluster='firm').unrounded
        np.testing.assert_allclose([r.std_error for r in rows], reference.bse, rtol=1e-6)

    def test_hc3_label(self, logit_fit):
        result = summ(logit_fit, robust=True)
        assert result.info['se_type'] == 'Robust, type = HC3'
        assert all(np.isfinite(r.std_error) for r in result.unrounded)
